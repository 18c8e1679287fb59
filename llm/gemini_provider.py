"""
[V3.5] LLMProvider 针对 Google Gemini 的具体实现。
[V4.1] 使用 @register_provider 进行自动注册。
"""
import logging
from typing import Optional

from google import genai
from google.genai import types

# (V4.1) 导入注册装饰器
from llm.provider_abc import LLMProvider, register_provider

# (V4.0) 导入 GlobalConfig
from config import GlobalConfig

logger = logging.getLogger(__name__)


@register_provider("gemini")  # <--- [V4.1] 注册 Gemini
class GeminiProvider(LLMProvider):
    """
    (V3.5) Gemini 策略实现。
    """

    def __init__(self, global_config: GlobalConfig):
        """
        (V4.0) 初始化 Gemini 客户端 (genai.Client)。
        - 接收 GlobalConfig
        """
        self.global_config = global_config
        if not self.global_config.GEMINI_API_KEY:
            logger.error("❌ (V3.4) GEMINI_API_KEY 未设置。请检查您的 .env 文件。")
            raise ValueError("GEMINI_API_KEY 未设置。")

        try:
            # genai 的超时单位为毫秒
            self.client = genai.Client(
                api_key=self.global_config.GEMINI_API_KEY,
                http_options=types.HttpOptions(
                    timeout=int(self.global_config.ANALYSIS_TIMEOUT * 1000)
                ),
            )
            self.default_model = self.global_config.DEFAULT_MODEL_GEMINI
            logger.info(
                f"✅ GeminiProvider (genai.Client 模式) 初始化成功 (模型: {self.default_model})"
            )
        except Exception as e:
            logger.error(f"❌ (V3.4) Gemini (genai.Client) 客户端初始化失败: {e}")
            raise ValueError(f"Gemini (genai.Client) 客户端初始化失败: {e}")

    def complete(self, prompt: str) -> Optional[str]:
        response = self.client.models.generate_content(
            model=f"models/{self.default_model}",
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=self.global_config.ANALYSIS_SYSTEM_PROMPT,
                max_output_tokens=self.global_config.ANALYSIS_MAX_TOKENS,
                temperature=self.global_config.ANALYSIS_TEMPERATURE,
            ),
        )
        if not response or not response.text:
            raise ValueError("API 调用成功，但回复内容为空")
        return response.text.strip()
