# context.py
"""
[V4.0] 运行时配置的数据模型
[V5.0] 改为描述一次远程提交报告请求
"""
import threading
from dataclasses import dataclass, field
from typing import Optional

from config import GlobalConfig
from models import DateRange


@dataclass
class RunContext:
    """
    (V4.0) 封装一次运行所需的所有配置和状态。
    这是从 CLI 传递到 Orchestrator 的唯一对象。
    """

    # --- 目标仓库 ---
    repo_reference: str
    branch: str

    # --- 范围参数 ---
    # None 表示获取全部历史 (--all)
    date_range: Optional[DateRange]

    # --- 报告参数 ---
    output_format: str
    report_type: str

    # --- 全局配置 ---
    # 包含所有 API 密钥、常量和 .env 加载的数据
    global_config: GlobalConfig

    # --- AI 参数 ---
    llm_id: str = "openai"
    no_ai: bool = False

    # --- 可选参数 ---
    author: Optional[str] = None
    token: Optional[str] = None
    save: bool = False
    output_dir: Optional[str] = None
    top_files: int = 10

    # --- [V5.0] 取消信号：置位后停止发出新的分页/详情请求 ---
    cancel_event: threading.Event = field(default_factory=threading.Event)
