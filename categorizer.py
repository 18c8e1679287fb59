# categorizer.py
"""
[V5.0] 提交意图分析 (ChangeCategorizer)
- HeuristicCategorizer: 基于文件路径与提交信息关键字的规则分析，始终可用。
- AnalyzerCategorizer: 调用外部 LLM (prompt -> text)，任何失败都回退到启发式分析。
两者实现同一个接口 explain(commit) -> str，在构造时由 get_categorizer 选定。
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from ai_analyzer import get_llm_provider
from context import RunContext
from errors import AnalyzerUnavailable
from models import Commit

logger = logging.getLogger(__name__)

# (关键字, 是否同时检查提交信息, 要点块)，按顺序逐条匹配，可累计
_TOPIC_RULES: Tuple[Tuple[Tuple[str, ...], bool, Tuple[str, ...]], ...] = (
    (
        ("auth",),
        True,
        (
            "* Authentication/Authorization changes",
            "  - Implemented or modified user authentication system",
            "  - Updated security protocols or access controls",
        ),
    ),
    (
        ("api",),
        True,
        (
            "* API integration or endpoint changes",
            "  - Added new API endpoints or modified existing ones",
            "  - Integrated external services or third-party APIs",
            "  - Updated API configuration or connection settings",
        ),
    ),
    (
        ("ui", "css", "jsx"),
        False,
        (
            "* UI/UX design updates",
            "  - Modified user interface components and layouts",
            "  - Updated styling, themes, or visual elements",
            "  - Improved user experience and interface responsiveness",
        ),
    ),
    (
        ("test",),
        False,
        (
            "* Testing improvements",
            "  - Added or updated test cases and test coverage",
            "  - Implemented automated testing or quality assurance",
        ),
    ),
    (
        ("readme",),
        False,
        (
            "* Documentation updates",
            "  - Updated project documentation and guides",
            "  - Improved code comments or technical documentation",
        ),
    ),
    (
        ("env",),
        False,
        (
            "* Environment configuration changes",
            "  - Updated environment variables and configuration settings",
            "  - Modified deployment or development environment setup",
        ),
    ),
    (
        ("package",),
        False,
        (
            "* Dependency updates",
            "  - Updated project dependencies and libraries",
            "  - Added new packages or updated existing ones",
        ),
    ),
)

BACKEND_EXTENSIONS = (".js", ".py", ".java", ".php")
FRONTEND_EXTENSIONS = (".jsx", ".tsx", ".vue", ".html", ".css")

_FULL_STACK_BLOCK = (
    "* Full-stack development changes",
    "  - Worked on both frontend and backend components",
    "  - Implemented end-to-end features or functionality",
)
_BACKEND_BLOCK = (
    "* Backend functionality updates",
    "  - Modified server-side logic and business rules",
    "  - Updated database operations or data processing",
)
_FRONTEND_BLOCK = (
    "* Frontend development changes",
    "  - Updated client-side components and user interface",
    "  - Modified user interactions and frontend logic",
)
_GENERAL_BLOCK = (
    "* General code changes and improvements",
    "  - Made general code improvements and optimizations",
    "  - Updated existing functionality or fixed issues",
)


class Categorizer(ABC):
    """(V5.0) 提交分析策略接口"""

    @abstractmethod
    def explain(self, commit: Commit) -> str:
        pass


class HeuristicCategorizer(Categorizer):
    """
    基于规则的分析：
    1. 主题关键字 (认证、API、UI、测试、文档、环境配置、依赖) 逐组匹配，命中即追加对应要点块。
    2. 独立地按扩展名子串把文件划分为后端 / 前端，追加全栈、仅后端、仅前端三者之一。
    3. 两者都未命中时输出通用要点块。
    """

    def explain(self, commit: Commit) -> str:
        paths = [f.path.lower() for f in commit.changed_files]
        message = commit.message.lower()
        lines: List[str] = []

        for keywords, check_message, block in _TOPIC_RULES:
            in_paths = any(k in p for p in paths for k in keywords)
            in_message = check_message and any(k in message for k in keywords)
            if in_paths or in_message:
                lines.extend(block)

        has_backend = any(ext in p for p in paths for ext in BACKEND_EXTENSIONS)
        has_frontend = any(ext in p for p in paths for ext in FRONTEND_EXTENSIONS)
        if has_backend and has_frontend:
            lines.extend(_FULL_STACK_BLOCK)
        elif has_backend:
            lines.extend(_BACKEND_BLOCK)
        elif has_frontend:
            lines.extend(_FRONTEND_BLOCK)

        if not lines:
            lines.extend(_GENERAL_BLOCK)
        return "\n".join(lines)


def build_prompt(commit: Commit) -> str:
    """组装发送给外部分析器的结构化 prompt"""
    lines = [f"Commit Message: {commit.message}", "", "Files Changed:"]
    for f in commit.changed_files:
        lines.append(f"- {f.path} ({f.status}, +{f.additions} -{f.deletions})")
    lines.append("")
    lines.append(
        f"Total Changes: +{commit.stats.additions} -{commit.stats.deletions} lines"
    )
    lines.append("")
    lines.append("Please analyze this commit and provide:")
    lines.append("1. What features or functionality were added/modified/removed")
    lines.append(
        '2. What specific changes were made (e.g., "Added user authentication", '
        '"Updated API integration", "Fixed UI design")'
    )
    lines.append("3. What the developer accomplished in this commit")
    lines.append("4. Any technical improvements or bug fixes")
    lines.append("")
    lines.append(
        "Provide a clear, concise analysis in bullet points focusing on the "
        "actual functionality and purpose of the changes."
    )
    return "\n".join(lines)


class AnalyzerCategorizer(Categorizer):
    """
    (V5.0) 外部分析器策略。
    analyzer: (prompt: str) -> str，可能抛出异常或返回空内容；
    这些情况都记为 AnalyzerUnavailable 并透明地回退到 fallback。
    """

    def __init__(
        self,
        analyzer: Callable[[str], Optional[str]],
        fallback: Optional[Categorizer] = None,
        max_chars: int = 2000,
    ):
        self.analyzer = analyzer
        self.fallback = fallback or HeuristicCategorizer()
        self.max_chars = max_chars

    def explain(self, commit: Commit) -> str:
        try:
            result = self.analyzer(build_prompt(commit))
            if not isinstance(result, str) or not result.strip():
                raise AnalyzerUnavailable("分析器返回了空内容")
            return result.strip()[: self.max_chars]
        except Exception as e:
            logger.warning(
                f"⚠️ [Analyzer] AnalyzerUnavailable ({commit.short_id}): {e}，回退到启发式分析"
            )
            return self.fallback.explain(commit)


def get_categorizer(context: RunContext) -> Categorizer:
    """
    (V5.0) 根据运行上下文选择分析策略。
    quick 报告或 --no-ai 时直接使用启发式；供应商不可用时同样回退。
    """
    heuristic = HeuristicCategorizer()
    if context.no_ai or context.report_type != "enhanced":
        return heuristic

    try:
        provider = get_llm_provider(context.llm_id, context.global_config)
    except (ValueError, ImportError) as e:
        logger.warning(f"⚠️ [Analyzer] AI 分析不可用 ({e})，使用启发式分析。")
        return heuristic

    logger.info(
        f"✅ 🤖 [Analyzer] 使用 {provider.__class__.__name__} 进行提交分析"
    )
    return AnalyzerCategorizer(
        provider.complete,
        fallback=heuristic,
        max_chars=context.global_config.ANALYSIS_MAX_CHARS,
    )
