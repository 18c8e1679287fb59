"""
[测试样例] 一个模拟的 LLM 供应商
用于验证动态注册机制 (Registry Pattern) 和分析器链路，不进行任何网络调用。
"""
import logging
from typing import Optional
from llm.provider_abc import LLMProvider, register_provider
from config import GlobalConfig

logger = logging.getLogger(__name__)


# 核心测试点：使用装饰器注册 ID 为 "mock"
@register_provider("mock")
class MockProvider(LLMProvider):
    """
    模拟的 Provider，仅根据 prompt 的首行返回固定格式的要点。
    """

    def __init__(self, global_config: GlobalConfig):
        self.global_config = global_config
        logger.info("✅ MockProvider 已初始化 (无需 API Key)")

    def complete(self, prompt: str) -> Optional[str]:
        first_line = prompt.strip().split("\n")[0] if prompt.strip() else ""
        return (
            "* [Mock] Commit analysis\n"
            f"  - Prompt header: {first_line[:60]}\n"
            f"  - Prompt length: {len(prompt)} chars"
        )
