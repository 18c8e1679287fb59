"""
[V3.5] LLMProvider 针对 DeepSeek 的具体实现。
[V4.1] 使用 @register_provider 进行自动注册。
[V5.0] DeepSeek 兼容 OpenAI 接口，直接复用 OpenAIProvider 的调用逻辑。
"""
from llm.provider_abc import register_provider
from llm.openai_provider import OpenAIProvider


@register_provider("deepseek")  # <--- [V4.1] 注册 DeepSeek
class DeepSeekProvider(OpenAIProvider):
    """
    (V3.5) DeepSeek 策略实现 (OpenAI 兼容)。
    """

    base_url = "https://api.deepseek.com"

    def __init__(self, global_config):
        self.base_url = global_config.DEEPSEEK_BASE_URL
        super().__init__(global_config)

    def _api_key(self) -> str:
        return self.global_config.DEEPSEEK_API_KEY

    def _default_model(self) -> str:
        return self.global_config.DEFAULT_MODEL_DEEPSEEK
