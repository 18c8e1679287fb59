# test_registry.py
import unittest
import os
import logging

# 导入核心模块
from config import GlobalConfig
from ai_analyzer import get_llm_provider, load_providers_dynamically
from llm.provider_abc import PROVIDER_REGISTRY, LLMProvider

# 配置日志输出以便观察
logging.basicConfig(level=logging.INFO)


class TestV4Registry(unittest.TestCase):

    def setUp(self):
        # 模拟全局配置
        self.config = GlobalConfig()
        # 确保脚本路径正确，以便 scanner 能找到 llm/ 目录
        self.config.SCRIPT_BASE_PATH = os.path.dirname(os.path.abspath(__file__))
        self.config.OPENAI_API_KEY = ""
        load_providers_dynamically(self.config.SCRIPT_BASE_PATH)

    def test_dynamic_discovery(self):
        """测试是否能自动扫描到 llm/ 下的所有供应商"""
        for provider_id in ("mock", "openai", "gemini", "deepseek"):
            self.assertIn(
                provider_id, PROVIDER_REGISTRY, f"❌ '{provider_id}' 未被自动注册！"
            )

    def test_registered_classes_implement_interface(self):
        for provider_cls in PROVIDER_REGISTRY.values():
            self.assertTrue(issubclass(provider_cls, LLMProvider))

    def test_instantiation(self):
        """测试是否能实例化 MockProvider 并调用 complete"""
        provider = get_llm_provider("mock", self.config)
        output = provider.complete("Commit Message: add auth\n\nFiles Changed:")
        self.assertTrue(output.startswith("* [Mock]"))
        self.assertIn("Commit Message: add auth", output)

    def test_unconfigured_provider_raises_value_error(self):
        with self.assertRaises(ValueError):
            get_llm_provider("openai", self.config)

    def test_unknown_provider_raises_value_error(self):
        with self.assertRaises(ValueError):
            get_llm_provider("no-such-provider", self.config)

    def test_duplicate_registration_rejected(self):
        from llm.provider_abc import register_provider

        with self.assertRaises(ValueError):

            @register_provider("mock")
            class AnotherMock(LLMProvider):
                def complete(self, prompt):
                    return prompt


if __name__ == "__main__":
    unittest.main()
