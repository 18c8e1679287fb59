# config.py
"""
[V4.0] 全局配置
[V5.0] 面向远程 GitHub 仓库的提交报告配置
- 新增 ClientConfig：不可变的客户端配置，由 GlobalConfig 构建后注入数据源
"""
import os
import sys
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv


# --- (V3.0) 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
    print(f"✅ (V3.0) 已从脚本目录加载 .env: {env_path}", file=sys.stderr)
else:
    load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ClientConfig:
    """
    [V5.0] 远程 API 客户端的不可变配置。
    每次运行构建一次并通过构造函数传入，不再在服务实例上持有可变的请求头。
    """

    token: str
    api_base_url: str = "https://api.github.com"
    api_version: str = "2022-11-28"
    per_page: int = 100
    timeout: float = 30.0
    max_workers: int = 4

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": self.api_version,
        }


class GlobalConfig:
    """
    (V4.0) 全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    TEMPLATES_DIR_NAME: str = "templates"
    REPORTS_DIR_NAME: str = "reports"

    # =================================================================
    # --- [V5.0] GitHub API 配置 ---
    # =================================================================
    GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")
    GITHUB_API_BASE_URL: str = os.getenv(
        "GITHUB_API_BASE_URL", "https://api.github.com"
    )
    GITHUB_API_VERSION: str = "2022-11-28"
    # 上游单页条数，取值 1..100 (GitHub 上限为 100)
    GITHUB_PER_PAGE: int = min(max(_env_int("GITHUB_PER_PAGE", 100), 1), 100)
    REQUEST_TIMEOUT: float = _env_float("REQUEST_TIMEOUT", 30.0)
    # 并发获取提交详情的线程数上限
    DETAIL_FETCH_WORKERS: int = max(_env_int("DETAIL_FETCH_WORKERS", 4), 1)
    DEFAULT_BRANCH: str = os.getenv("DEFAULT_BRANCH", "main")

    # --- 报告默认值 ---
    DEFAULT_FORMAT: str = "text"
    DEFAULT_REPORT_TYPE: str = "quick"
    TOP_CONTRIBUTORS_LIMIT: int = 5
    TOP_FILES_LIMIT: int = 10

    # =================================================================
    # --- (V3.4) AI 供应商配置 ---
    # =================================================================

    # 1. 供应商 API 密钥
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    DEEPSEEK_API_KEY: str = os.getenv("DEEPSEEK_API_KEY", "")

    # 2. 供应商特定配置
    DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"

    # 3. 应用程序默认值
    DEFAULT_LLM: str = os.getenv("DEFAULT_LLM", "openai").lower()

    # 4. 供应商的默认模型
    DEFAULT_MODEL_OPENAI: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    DEFAULT_MODEL_GEMINI: str = "gemini-2.5-flash"
    DEFAULT_MODEL_DEEPSEEK: str = "deepseek-chat"

    # 5. [V5.0] 单次提交分析的输出上限
    ANALYSIS_MAX_TOKENS: int = 300
    ANALYSIS_MAX_CHARS: int = 2000
    ANALYSIS_TEMPERATURE: float = 0.3
    ANALYSIS_TIMEOUT: float = _env_float("ANALYSIS_TIMEOUT", 30.0)
    ANALYSIS_SYSTEM_PROMPT: str = (
        "You are a software development analyst. Analyze commit changes and "
        "provide clear, technical insights about what was accomplished."
    )

    def is_provider_configured(self, provider: str) -> bool:
        """
        检查特定供应商是否已在环境中设置其 API 密钥。
        [V4.1] mock 不需要密钥。
        """
        if provider == "mock":
            return True
        if provider == "openai":
            return bool(self.OPENAI_API_KEY)
        if provider == "gemini":
            return bool(self.GEMINI_API_KEY)
        if provider == "deepseek":
            return bool(self.DEEPSEEK_API_KEY)
        return False

    @property
    def templates_dir(self) -> str:
        return os.path.join(self.SCRIPT_BASE_PATH, self.TEMPLATES_DIR_NAME)

    @property
    def reports_dir(self) -> str:
        return os.path.join(self.SCRIPT_BASE_PATH, self.REPORTS_DIR_NAME)

    def build_client_config(self, token: Optional[str] = None) -> ClientConfig:
        """(V5.0) 组装一次运行使用的不可变客户端配置"""
        return ClientConfig(
            token=token if token is not None else self.GITHUB_TOKEN,
            api_base_url=self.GITHUB_API_BASE_URL.rstrip("/"),
            api_version=self.GITHUB_API_VERSION,
            # 实例上覆盖的值同样需要限制在 1..100
            per_page=min(max(self.GITHUB_PER_PAGE, 1), 100),
            timeout=self.REQUEST_TIMEOUT,
            max_workers=max(self.DETAIL_FETCH_WORKERS, 1),
        )
