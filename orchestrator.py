# orchestrator.py
"""
[V4.6] 业务逻辑编排器
[V5.0] 提交报告流水线 (每次请求独立构建 Commit / Aggregate / Report)
  fetch -> 日期过滤 -> 作者过滤 -> [汇总, 逐提交分析] -> 渲染 -> 输出/保存
- 校验类错误 (仓库地址、日期、输出格式、Token) 在构造时抛出，早于任何网络请求。
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Sequence

from context import RunContext
from models import REPORT_TYPES, Commit, DateRange, Report, ReportResult
from errors import ConfigurationError, InvalidDateRange
from aggregator import summarize
from categorizer import Categorizer, get_categorizer
from commit_filters import commit_date, filter_by_author, filter_by_date, filter_by_range
import report_builder

# V4.5 导入数据源工厂
from data_sources.base import ChangeSource
from data_sources.factory import get_data_source
from data_sources.github_api import parse_repository_reference

logger = logging.getLogger(__name__)


class ReportOrchestrator:
    """
    (V4.0) 负责执行报告生成的核心业务逻辑。
    data_source / categorizer 可以注入 (测试时使用)，否则由工厂根据 RunContext 构建。
    """

    def __init__(
        self,
        context: RunContext,
        data_source: Optional[ChangeSource] = None,
        categorizer: Optional[Categorizer] = None,
    ):
        self.context = context
        self.global_config = context.global_config

        # --- 0. 校验 (无网络请求) ---
        self.identity = parse_repository_reference(context.repo_reference)
        if context.output_format not in report_builder.FORMAT_EXTENSIONS:
            raise ConfigurationError(f"不支持的输出格式: {context.output_format}")
        if context.report_type not in REPORT_TYPES:
            raise ConfigurationError(f"不支持的报告类型: {context.report_type}")

        # V4.5 初始化数据源 (缺少 Token 时抛出 ConfigurationError)
        self.data_source = data_source or get_data_source(context)
        self._categorizer = categorizer

        logger.info(
            f"✅ (V5.0) ReportOrchestrator 已初始化 ({self.identity.full_name}@{context.branch})"
        )

    @property
    def categorizer(self) -> Categorizer:
        # 只有 enhanced 报告会用到分析器，延迟到第一次使用时再初始化供应商
        if self._categorizer is None:
            self._categorizer = get_categorizer(self.context)
        return self._categorizer

    # -----------------------------------------------------------------
    # 流水线步骤
    # -----------------------------------------------------------------

    def _fetch(self) -> List[Commit]:
        """获取提交并应用日期 / 作者过滤"""
        date_range = self.context.date_range
        cancel_event = self.context.cancel_event

        if date_range is None:
            logger.info(f"📥 正在获取 {self.identity.full_name} 的全部历史...")
            commits = self.data_source.fetch_all(
                self.identity, self.context.branch, cancel_event
            )
        else:
            logger.info(
                f"📥 正在获取 {self.identity.full_name} 在 {date_range.label} 的提交..."
            )
            commits = self.data_source.fetch_range(
                self.identity,
                date_range.start,
                date_range.end,
                self.context.branch,
                cancel_event,
            )
            commits = filter_by_range(commits, date_range.start, date_range.end)

        if self.context.author:
            commits = filter_by_author(commits, self.context.author)
            logger.info(f"ℹ️ 作者过滤 '{self.context.author}' 后剩余 {len(commits)} 个提交")
        return commits

    def _build_report(
        self, commits: Sequence[Commit], date_range: Optional[DateRange]
    ) -> Report:
        aggregate = summarize(commits)

        analyses: tuple = ()
        if self.context.report_type == "enhanced" and commits:
            logger.info(f"🤖 正在分析 {len(commits)} 个提交...")
            analyses = tuple(self.categorizer.explain(c) for c in commits)

        return Report(
            repository=self.identity,
            date_range=date_range,
            commits=tuple(commits),
            aggregate=aggregate,
            branch=self.context.branch,
            report_type=self.context.report_type,
            analyses=analyses,
            format=self.context.output_format,
            created_at=datetime.now().isoformat(timespec="seconds"),
            author_filter=self.context.author,
        )

    def _finish(self, report: Report) -> ReportResult:
        """渲染、附加正文并按需保存"""
        fmt = self.context.output_format
        content = report_builder.render_report(
            report,
            fmt,
            templates_dir=self.global_config.templates_dir,
            top_files=self.context.top_files,
        )
        report = replace(report, rendered_body=content.decode("utf-8"))
        filename = report_builder.generate_filename(
            report.report_type, report.range_token, fmt
        )

        saved_path = None
        if self.context.save:
            output_dir = self.context.output_dir or self.global_config.reports_dir
            saved_path = report_builder.save_report(content, filename, output_dir)

        if report.aggregate.total_commits == 0:
            logger.warning(f"⚠️ 未找到提交记录 ({report.range_label})")
        else:
            logger.info(
                f"✅ 报告生成完毕: {report.aggregate.total_commits} 个提交, "
                f"+{report.aggregate.total_additions} -{report.aggregate.total_deletions}"
            )
        return ReportResult(
            report=report, content=content, filename=filename, saved_path=saved_path
        )

    # -----------------------------------------------------------------
    # 入口
    # -----------------------------------------------------------------

    def run(self) -> ReportResult:
        """
        (V5.0) 为整个日期范围 (或全部历史) 生成一份报告。
        """
        commits = self._fetch()
        report = self._build_report(commits, self.context.date_range)
        return self._finish(report)

    def run_daily(self) -> List[ReportResult]:
        """
        (V5.0) 一次获取整个范围，再按日历日逐日生成报告。
        """
        date_range = self.context.date_range
        if date_range is None:
            raise InvalidDateRange("--daily 需要指定日期或日期范围")

        commits = self._fetch()
        results = []
        for day in date_range.days():
            day_commits = filter_by_date(commits, day)
            logger.info(f"📅 {day.isoformat()}: {len(day_commits)} 个提交")
            report = self._build_report(day_commits, DateRange(day, day))
            results.append(self._finish(report))
        return results

    def run_single(self, commit_id: str) -> ReportResult:
        """
        (V5.0) 单个提交的报告 (不存在时抛出 CommitNotFound)。
        """
        logger.info(f"📥 正在获取提交 {commit_id}...")
        commit = self.data_source.fetch_one(self.identity, commit_id)
        day = commit_date(commit)
        date_range = DateRange(day, day) if day else None
        report = self._build_report([commit], date_range)
        return self._finish(report)
