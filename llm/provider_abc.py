"""
[V3.5] 所有 LLM 供应商的抽象基类 (ABC)。
[V4.1] 新增 Registry Pattern 支持，允许动态注册供应商。
[V5.0] 接口收敛为单一的 complete(prompt) -> text，供提交分析器调用。
"""
from abc import ABC, abstractmethod
from typing import Optional, Type, Dict

# --- [V4.1] 注册表机制 START ---
# 全局注册表，存储 "provider_id" -> Provider Class 的映射
PROVIDER_REGISTRY: Dict[str, Type["LLMProvider"]] = {}


def register_provider(provider_id: str):
    """
    类装饰器：用于将具体的 Provider 实现类注册到全局注册表中。

    使用示例:
        @register_provider("openai")
        class OpenAIProvider(LLMProvider):
            ...
    """

    def decorator(cls):
        if provider_id in PROVIDER_REGISTRY:
            raise ValueError(
                f"Provider id '{provider_id}' 已经被注册过 ({PROVIDER_REGISTRY[provider_id].__name__})"
            )
        PROVIDER_REGISTRY[provider_id] = cls
        return cls

    return decorator


# --- [V4.1] 注册表机制 END ---


class LLMProvider(ABC):
    """
    (V5.0 接口) LLM 供应商的抽象接口。
    """

    @abstractmethod
    def complete(self, prompt: str) -> Optional[str]:
        """
        提交 prompt 并返回模型输出 (输出长度由 ANALYSIS_MAX_TOKENS 限制)。
        调用失败时直接抛出异常，由调用方决定如何降级。
        """
        pass
