# commit_filters.py
"""
[V5.0] 提交过滤器
- 日期窗口：按作者时间戳的日历日期 (保留时间戳自身的时区偏移，不做转换) 过滤，闭区间。
- 作者过滤：作者或提交者姓名的大小写不敏感子串匹配。
所有过滤均保持原始顺序。
"""
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from models import Commit

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def parse_timestamp(timestamp: str) -> Optional[datetime]:
    """解析 ISO 8601 时间戳，兼容结尾的 'Z'"""
    if not timestamp:
        return None
    value = timestamp.strip()
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def commit_date(commit: Commit) -> Optional[date]:
    """作者时间戳在其自身偏移下的日历日期"""
    parsed = parse_timestamp(commit.author.timestamp)
    if parsed is None:
        logger.debug(f"无法解析提交时间: {commit.id} {commit.author.timestamp!r}")
        return None
    return parsed.date()


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def filter_by_date(commits: Iterable[Commit], target: DateLike) -> List[Commit]:
    """返回作者日期等于 target 的提交"""
    target_date = _as_date(target)
    return [c for c in commits if commit_date(c) == target_date]


def filter_by_range(
    commits: Iterable[Commit], start: DateLike, end: DateLike
) -> List[Commit]:
    """返回作者日期落在 [start, end] 内的提交 (单次谓词，不逐日枚举)"""
    start_date, end_date = _as_date(start), _as_date(end)
    selected = []
    for commit in commits:
        day = commit_date(commit)
        if day is not None and start_date <= day <= end_date:
            selected.append(commit)
    return selected


def filter_by_author(commits: Iterable[Commit], author: str) -> List[Commit]:
    """作者或提交者姓名包含 author (忽略大小写)"""
    needle = author.lower()
    return [
        c
        for c in commits
        if needle in c.author.name.lower() or needle in c.committer.name.lower()
    ]
