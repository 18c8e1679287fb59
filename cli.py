# cli.py
"""
[V4.0] 命令行界面 (Interface) 层
[V4.1] 更新：移除 --llm 的 choices 限制，支持动态注册的供应商。
[V5.0] 面向远程仓库的提交报告：日期 / 日期范围 / 全部历史 / 单个提交。
- 报告正文写到 stdout，日志写到 stderr。
- 只捕获 CommitReportError，向用户输出一条可读的错误信息。
- Ctrl+C 置位取消信号，已获取的提交仍会生成报告，退出码为 130。
"""
import argparse
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from datetime import date
from typing import List, Optional

from config import GlobalConfig
from context import RunContext
from errors import CommitReportError, InvalidDateRange
from models import DateRange, ReportResult
from orchestrator import ReportOrchestrator
import report_builder
import utils

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def setup_parser() -> argparse.ArgumentParser:
    """
    (V4.0) 负责所有 argparse 的定义。
    """
    parser = argparse.ArgumentParser(
        prog="commit-report",
        description="GitHub 提交报告生成器 (V5.0)",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "-r",
        "--repo",
        type=str,
        required=True,
        help="远程仓库地址 (HTTPS 或 SSH)。\n"
        "例如: https://github.com/owner/repo 或 git@github.com:owner/repo.git",
    )

    # --- 范围参数 (互斥) ---
    range_group = parser.add_mutually_exclusive_group()
    range_group.add_argument(
        "-d", "--date", type=str, help="单日报告 (YYYY-MM-DD)。\n(默认: 今天)"
    )
    range_group.add_argument(
        "--from", dest="date_from", type=str, help="日期范围起始 (YYYY-MM-DD，与 --to 连用)"
    )
    range_group.add_argument(
        "--all", action="store_true", help="获取分支的全部历史"
    )
    range_group.add_argument(
        "--commit", type=str, help="只报告指定的提交 (SHA)"
    )
    parser.add_argument(
        "--to", dest="date_to", type=str, help="日期范围结束 (YYYY-MM-DD)。\n(默认: 与 --from 相同)"
    )

    # --- 报告参数 ---
    parser.add_argument(
        "-b", "--branch", type=str, default=None, help="分支名称 (默认: main)"
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="output_format",
        type=str,
        choices=list(report_builder.FORMAT_EXTENSIONS),
        default=None,
        help="输出格式 (默认: text)",
    )
    parser.add_argument(
        "--type",
        dest="report_type",
        type=str,
        choices=["quick", "enhanced"],
        default=None,
        help="quick: 仅提交与统计\nenhanced: 额外输出每个提交的分析 (默认: quick)",
    )
    parser.add_argument("--author", type=str, default=None, help="只保留作者/提交者姓名包含该字符串的提交")
    parser.add_argument("--daily", action="store_true", help="日期范围内逐日生成报告")
    parser.add_argument("--top-files", type=int, default=None, help="统计中显示的文件数量 (默认: 10)")

    # --- AI 参数 ---
    parser.add_argument(
        "--llm",
        type=str,
        default=None,
        help="[V3.4] 指定要使用的 LLM 供应商 (例如 'openai', 'gemini', 'deepseek', 'mock')。\n"
        "(默认: 使用 .env 中的 DEFAULT_LLM)",
    )
    parser.add_argument("--no-ai", action="store_true", help="禁用 AI 分析，使用启发式分析")

    # --- 输出参数 ---
    parser.add_argument("--save", action="store_true", help="将报告保存到文件 (而不是打印)")
    parser.add_argument("--output-dir", type=str, default=None, help="保存目录 (默认: ./reports)")
    parser.add_argument("--token", type=str, default=None, help="GitHub Token (覆盖 GITHUB_TOKEN)")

    return parser


def _resolve_date_range(args: argparse.Namespace) -> Optional[DateRange]:
    if args.all or args.commit:
        return None
    if args.date_to and not args.date_from:
        raise InvalidDateRange("--to 需要与 --from 一起使用")
    if args.date_from:
        return DateRange.parse(args.date_from, args.date_to)
    if args.date:
        return DateRange.parse(args.date)
    today = date.today()
    return DateRange(today, today)


def build_context(args: argparse.Namespace, global_config: GlobalConfig) -> RunContext:
    """
    (V4.0) 合并命令行参数与全局配置，组装 RunContext。
    """
    return RunContext(
        repo_reference=args.repo,
        branch=args.branch or global_config.DEFAULT_BRANCH,
        date_range=_resolve_date_range(args),
        output_format=args.output_format or global_config.DEFAULT_FORMAT,
        report_type=args.report_type or global_config.DEFAULT_REPORT_TYPE,
        global_config=global_config,
        llm_id=(args.llm or global_config.DEFAULT_LLM).lower(),
        no_ai=args.no_ai,
        author=args.author,
        token=args.token,
        save=args.save,
        output_dir=args.output_dir,
        top_files=args.top_files if args.top_files is not None else global_config.TOP_FILES_LIMIT,
    )


def _emit(result: ReportResult, stream) -> None:
    """打印或报告保存位置，并输出摘要"""
    if result.saved_path:
        logger.info(f"💾 报告已保存到: {result.saved_path}")
    else:
        text = result.content.decode("utf-8")
        stream.write(text if text.endswith("\n") else text + "\n")
        stream.flush()

    agg = result.report.aggregate
    logger.info("📊 Summary:")
    logger.info(f"   - Total commits: {agg.total_commits}")
    logger.info(f"   - Total additions: +{agg.total_additions}")
    logger.info(f"   - Total deletions: -{agg.total_deletions}")
    logger.info(f"   - Net changes: {agg.net_changes}")
    if result.report.report_type == "enhanced":
        logger.info(f"   - Analysis: {'Enabled' if result.report.analyses else 'None'}")


@contextmanager
def _sigint_sets(cancel_event: threading.Event):
    """
    (V5.0) 运行期间把 Ctrl+C 转为取消信号，数据源据此停止请求并返回已获取的部分结果。
    再次按下 Ctrl+C 时照常抛出 KeyboardInterrupt。
    """
    # signal.signal 只能在主线程调用
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("⚠️ 收到中断信号，停止获取新的提交...")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_cli(argv: Optional[List[str]] = None, stream=None) -> int:
    """
    (V4.0) 主入口点，返回进程退出码。
    """
    stream = stream or sys.stdout

    # 1. 解析 Args
    parser = setup_parser()
    args = parser.parse_args(argv)

    # 2. 加载 GlobalConfig
    global_config = GlobalConfig()

    try:
        # 3. 组装 RunContext (日期在此处校验)
        run_context = build_context(args, global_config)

        logger.info("=" * 50)
        logger.info("🚀 (V5.0) Commit Report 启动...")
        logger.info(f"   [目标仓库]: {run_context.repo_reference}")
        logger.info(f"   [分支]: {run_context.branch}")
        if args.commit:
            logger.info(f"   [提交]: {args.commit}")
        else:
            label = run_context.date_range.label if run_context.date_range else "all history"
            logger.info(f"   [范围]: {label}")
        logger.info(f"   [格式]: {run_context.output_format} / {run_context.report_type}")
        logger.info("=" * 50)

        # 4. 运行 Orchestrator
        orchestrator = ReportOrchestrator(run_context)
        with _sigint_sets(run_context.cancel_event):
            if args.commit:
                results = [orchestrator.run_single(args.commit)]
            elif args.daily:
                results = orchestrator.run_daily()
            else:
                results = [orchestrator.run()]

        for result in results:
            _emit(result, stream)

        if run_context.cancel_event.is_set():
            logger.warning("⚠️ 已取消，以上报告只包含取消前获取的提交。")
            return EXIT_INTERRUPTED
        return EXIT_OK

    except CommitReportError as e:
        logger.error(f"❌ {e.__class__.__name__}: {e}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.warning("⚠️ 已取消。")
        return EXIT_INTERRUPTED


def main():
    """console_scripts 入口"""
    utils.setup_logging()
    sys.exit(run_cli())
