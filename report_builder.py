# report_builder.py
"""
[V4.2] 报告生成器 - Jinja2 模板引擎重构版
[V5.0] 提交报告渲染: text / markdown / html / json
- text 与 markdown 共用一次生成过程，仅装饰符 (标题、粗体、代码、列表前缀、分隔线) 不同。
- html 在 markdown 正文上执行一张有序的替换表后放入 Jinja2 模板。
  这张表只覆盖本报告会产生的标记，不是通用 markdown 解析器。
- json 输出完整的 Report 结构，可还原为相等的 Report。
"""
import html
import json
import logging
import os
import re
from datetime import datetime
from itertools import groupby
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from aggregator import top_contributors, top_files
from commit_filters import parse_timestamp
from config import GlobalConfig
from models import Commit, Report

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS: Dict[str, str] = {
    "text": "txt",
    "markdown": "md",
    "html": "html",
    "json": "json",
}

STATUS_LABELS: Dict[str, str] = {
    "added": "[ADDED]",
    "modified": "[MODIFIED]",
    "removed": "[REMOVED]",
    "renamed": "[RENAMED]",
}

FILENAME_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S-%f"
TEMPLATE_NAME = "report.html.j2"

# 装饰符表：两种格式的行结构完全一致
_DECORATIONS = {
    False: {"h1": "", "h2": "", "h3": "", "b": "", "code": "", "item": "  ", "sep": "-" * 50},
    True: {"h1": "# ", "h2": "## ", "h3": "### ", "b": "**", "code": "`", "item": "- ", "sep": "---"},
}

# markdown -> html 有序替换表 (标题 -> 粗体 -> 斜体 -> 行内代码 -> 列表项)
_MARKDOWN_SUBSTITUTIONS = (
    (re.compile(r"^### (.*)$", re.M), r"<h3>\1</h3>"),
    (re.compile(r"^## (.*)$", re.M), r"<h2>\1</h2>"),
    (re.compile(r"^# (.*)$", re.M), r"<h1>\1</h1>"),
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"(?<![\*\w])\*(?=\S)(.+?)(?<=\S)\*(?![\*\w])"), r"<em>\1</em>"),
    (re.compile(r"`([^`\n]+)`"), r"<code>\1</code>"),
    (re.compile(r"^- (.*)$", re.M), r"<li>\1</li>"),
)
_BLOCK_BREAK = re.compile(r"(</h[1-3]>|</ul>)<br>")


def _status_label(status: str) -> str:
    return STATUS_LABELS.get(status, "[CHANGED]")


def _commit_time(commit: Commit) -> str:
    """作者时间的 HH:MM:SS (保留时间戳自身的时区)"""
    parsed = parse_timestamp(commit.author.timestamp)
    if parsed is None:
        return commit.author.timestamp or "unknown"
    return parsed.strftime("%H:%M:%S")


def _empty_message(report: Report) -> str:
    message = f"No commits found for {report.range_label}"
    if report.author_filter:
        message += f" by {report.author_filter}"
    return message


def _commit_block(report: Report, index: int, commit: Commit, d: Dict[str, str]) -> List[str]:
    b, code = d["b"], d["code"]
    lines = [f"{d['h2']}Commit {index + 1}: {commit.title}", ""]
    if commit.body:
        lines.extend([commit.body, ""])
    lines.append(
        f"{b}Author:{b} {commit.author.name} | {b}Time:{b} {_commit_time(commit)}"
    )
    lines.append("")
    lines.append(
        f"{b}Changes:{b} +{commit.stats.additions} -{commit.stats.deletions} lines"
    )
    lines.append("")

    analysis = report.analysis_for(index)
    if analysis:
        lines.append(f"{b}What you accomplished:{b}")
        lines.extend(analysis.split("\n"))
        lines.append("")

    if commit.changed_files:
        lines.append(f"{b}Changed Files:{b}")
        for f in commit.changed_files:
            lines.append(
                f"{d['item']}{_status_label(f.status)} {code}{f.path}{code} ({f.changes} changes)"
            )
        lines.append("")

    lines.extend([d["sep"], ""])
    return lines


def _statistics_block(report: Report, d: Dict[str, str], file_limit: int) -> List[str]:
    b = d["b"]
    agg = report.aggregate
    lines = [
        f"{d['h2']}Commit Statistics",
        "",
        f"{d['item']}{b}Total Commits:{b} {agg.total_commits}",
        f"{d['item']}{b}Total Additions:{b} +{agg.total_additions}",
        f"{d['item']}{b}Total Deletions:{b} -{agg.total_deletions}",
        f"{d['item']}{b}Net Changes:{b} {agg.net_changes}",
        f"{d['item']}{b}Average Changes per Commit:{b} {agg.average_changes_per_commit}",
        "",
    ]

    contributors = top_contributors(agg, GlobalConfig.TOP_CONTRIBUTORS_LIMIT)
    if contributors:
        lines.extend([f"{d['h3']}Top Contributors", ""])
        for i, c in enumerate(contributors, 1):
            lines.append(
                f"{i}. {b}{c.name}{b} - {c.commits} commits (+{c.additions} -{c.deletions})"
            )
        lines.append("")

    files = top_files(agg, file_limit)
    if files:
        lines.extend([f"{d['h3']}Most Changed Files", ""])
        for i, f in enumerate(files, 1):
            lines.append(f"{i}. {b}{f.path}{b} - {f.changes} changes ({f.commits} commits)")
        lines.append("")
    return lines


def generate_text_report(report: Report, markdown: bool = False, top_files: int = 10) -> str:
    """
    生成 text 或 markdown 正文 (同一次生成过程)。
    没有提交时返回 "No commits found for ..." 提示。
    """
    if not report.commits:
        return _empty_message(report) + "\n"

    d = _DECORATIONS[markdown]
    b = d["b"]
    lines = [f"{d['h1']}Hey, on {report.range_label} you did these changes:", ""]
    lines.append(
        f"{b}Repository:{b} {report.repository.full_name} | {b}Branch:{b} {report.branch}"
    )
    lines.append("")

    for i, commit in enumerate(report.commits):
        lines.extend(_commit_block(report, i, commit, d))

    lines.extend(_statistics_block(report, d, top_files))
    return "\n".join(lines).rstrip("\n") + "\n"


def markdown_to_html(markdown_text: str) -> str:
    """
    按固定顺序把报告正文中的 markdown 标记替换为 HTML。
    先转义原文，确保提交信息中的尖括号不会被当作标签。
    替换表只覆盖报告自身产生的标记，不是完整的 markdown 解析器：
    提交正文里以 "# " 或 "- " 开头的行同样会变成标题或列表项。
    """
    text = html.escape(markdown_text.strip("\n"), quote=False)
    for pattern, replacement in _MARKDOWN_SUBSTITUTIONS:
        text = pattern.sub(replacement, text)

    # 连续的 <li> 行合并为一个 <ul>
    grouped = []
    for is_item, lines in groupby(text.split("\n"), key=lambda l: l.startswith("<li>")):
        if is_item:
            grouped.append("<ul>" + "".join(lines) + "</ul>")
        else:
            grouped.extend(lines)
    text = "\n".join(grouped)

    text = text.replace("\n\n", "</p><p>").replace("\n", "<br>")
    text = _BLOCK_BREAK.sub(r"\1", text)
    return f"<p>{text}</p>"


def _get_css_styles(templates_dir: str) -> str:
    """读取 CSS 文件内容"""
    css_path = os.path.join(templates_dir, "styles.css")
    try:
        with open(css_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        logger.error(f"❌ CSS 模板文件未找到: {css_path}")
        return "/* CSS 模板文件未找到 */"


def generate_html_report(report: Report, templates_dir: Optional[str] = None, top_files: int = 10) -> str:
    """
    (V4.2) 使用 Jinja2 模板引擎生成 HTML 报告。
    """
    # 1. 准备模板环境
    templates_dir = templates_dir or GlobalConfig().templates_dir
    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )

    # 2. 准备数据上下文
    body_markdown = generate_text_report(report, markdown=True, top_files=top_files)
    template_context = {
        "title": f"Commit Report - {report.repository.full_name}",
        "repository": report.repository,
        "range_label": report.range_label,
        "branch": report.branch,
        "report_type": report.report_type,
        "author_filter": report.author_filter,
        "generation_time": report.created_at,
        "css_content": _get_css_styles(templates_dir),
        "aggregate": report.aggregate,
        "body_html": markdown_to_html(body_markdown),
    }

    # 3. 加载并渲染模板
    template = env.get_template(TEMPLATE_NAME)
    logger.info(f"🎨 正在渲染 Jinja2 模板: {TEMPLATE_NAME}")
    return template.render(**template_context)


def generate_json_report(report: Report) -> str:
    """完整的 Report 结构 (无损)"""
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def render_report(report: Report, fmt: str, templates_dir: Optional[str] = None, top_files: int = 10) -> bytes:
    """(V5.0) 渲染入口: 返回 UTF-8 字节"""
    if fmt == "text":
        content = generate_text_report(report, markdown=False, top_files=top_files)
    elif fmt == "markdown":
        content = generate_text_report(report, markdown=True, top_files=top_files)
    elif fmt == "html":
        content = generate_html_report(report, templates_dir, top_files=top_files)
    elif fmt == "json":
        content = generate_json_report(report)
    else:
        raise ValueError(f"不支持的输出格式: {fmt} (可选: {', '.join(FORMAT_EXTENSIONS)})")
    return content.encode("utf-8")


def generate_filename(report_type: str, date_range_token: str, fmt: str, now: Optional[datetime] = None) -> str:
    """{type}-report-{token}-{timestamp}.{ext}，时间戳精确到微秒"""
    if fmt not in FORMAT_EXTENSIONS:
        raise ValueError(f"不支持的输出格式: {fmt}")
    timestamp = (now or datetime.now()).strftime(FILENAME_TIMESTAMP_FORMAT)
    return f"{report_type}-report-{date_range_token}-{timestamp}.{FORMAT_EXTENSIONS[fmt]}"


def save_report(content: bytes, filename: str, output_dir: str) -> Optional[str]:
    """保存报告到文件，失败时记录日志并返回 None"""
    full_path = os.path.join(output_dir, filename)
    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(content)
        logger.info(f"✅ 报告已保存: {full_path}")
        return full_path
    except OSError as e:
        logger.error(f"❌ 保存报告失败 ({full_path}): {e}")
        return None
