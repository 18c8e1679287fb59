# ai_analyzer.py
import logging
import os
import importlib

from config import GlobalConfig

# (V4.1) 导入 Registry 和基类
from llm.provider_abc import LLMProvider, PROVIDER_REGISTRY

logger = logging.getLogger(__name__)

_SKIP_MODULES = ("__init__.py", "provider_abc.py")


# --- (V4.1) 动态加载器 ---
def load_providers_dynamically(script_base_path: str):
    """
    (V4.1) 扫描 llm/ 目录下的所有 .py 文件并导入它们。
    这将触发 @register_provider 装饰器，将类注册到 PROVIDER_REGISTRY 中。
    """
    llm_dir = os.path.join(script_base_path, "llm")
    if not os.path.isdir(llm_dir):
        logger.warning(f"⚠️ 未找到 llm 目录: {llm_dir}")
        return

    for filename in sorted(os.listdir(llm_dir)):
        if not filename.endswith(".py") or filename in _SKIP_MODULES:
            continue

        # 构建模块名 (例如: llm.gemini_provider)，已导入的模块由 sys.modules 缓存
        module_name = f"llm.{filename[:-3]}"
        try:
            importlib.import_module(module_name)
        except Exception as e:
            # 单个供应商的 SDK 缺失不应影响其他供应商
            logger.error(f"❌ 动态加载模块 {module_name} 失败: {e}")


# --- (V4.1) 工厂函数 ---
def get_llm_provider(provider_id: str, global_config: GlobalConfig) -> LLMProvider:
    """
    (V4.1) 工厂函数：基于 Registry Pattern 实现。
    配置缺失或供应商未知时抛出 ValueError，由调用方决定是否回退到启发式分析。
    """
    logger.info(f"ℹ️ (V4.1) 正在初始化 LLM 供应商: {provider_id}")

    # 1. 动态加载所有可能的 providers
    load_providers_dynamically(global_config.SCRIPT_BASE_PATH)

    # 2. 检查配置
    if not global_config.is_provider_configured(provider_id):
        logger.warning(f"⚠️ 供应商 '{provider_id}' 未配置 API Key。")
        raise ValueError(
            f"供应商 '{provider_id}' 未配置。 "
            f"请在您的 .env 文件中设置相应的 API 密钥。"
        )

    # 3. 从注册表中查找
    if provider_id not in PROVIDER_REGISTRY:
        logger.error(f"❌ 未知的 LLM 供应商: '{provider_id}'")
        logger.error(f"   可用供应商: {sorted(PROVIDER_REGISTRY.keys())}")
        raise ValueError(f"未知的 LLM 供应商: {provider_id}")

    # 4. 实例化
    provider_class = PROVIDER_REGISTRY[provider_id]
    try:
        return provider_class(global_config)
    except ImportError as e:
        logger.error(f"❌ 供应商 '{provider_id}' 依赖缺失: {e}")
        raise
