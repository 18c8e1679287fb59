"""
[V5.0] LLMProvider 针对 OpenAI 的具体实现。
"""
import logging
from typing import Optional

from openai import OpenAI

from llm.provider_abc import LLMProvider, register_provider
from config import GlobalConfig

logger = logging.getLogger(__name__)


@register_provider("openai")
class OpenAIProvider(LLMProvider):
    """
    (V5.0) OpenAI Chat Completions 策略实现。
    """

    base_url: Optional[str] = None

    def __init__(self, global_config: GlobalConfig):
        self.global_config = global_config
        api_key = self._api_key()
        if not api_key:
            logger.error(f"❌ {self.__class__.__name__} 未设置 API Key。请检查您的 .env 文件。")
            raise ValueError(f"{self.__class__.__name__} 未设置 API Key。")

        try:
            self.client = OpenAI(
                api_key=api_key,
                base_url=self.base_url,
                timeout=self.global_config.ANALYSIS_TIMEOUT,
                max_retries=0,
            )
            self.default_model = self._default_model()
            logger.info(
                f"✅ {self.__class__.__name__} 初始化成功 (模型: {self.default_model})"
            )
        except Exception as e:
            logger.error(f"❌ {self.__class__.__name__} 客户端初始化失败: {e}")
            raise ValueError(f"{self.__class__.__name__} 客户端初始化失败: {e}")

    def _api_key(self) -> str:
        return self.global_config.OPENAI_API_KEY

    def _default_model(self) -> str:
        return self.global_config.DEFAULT_MODEL_OPENAI

    def complete(self, prompt: str) -> Optional[str]:
        messages = [
            {"role": "system", "content": self.global_config.ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        response = self.client.chat.completions.create(
            model=self.default_model,
            messages=messages,
            max_tokens=self.global_config.ANALYSIS_MAX_TOKENS,
            temperature=self.global_config.ANALYSIS_TEMPERATURE,
        )
        if response.choices and response.choices[0].message.content:
            return response.choices[0].message.content.strip()
        raise ValueError(f"未从 {self.__class__.__name__} 收到内容")
