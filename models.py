# models.py
"""
[V5.0] 数据模型
所有记录均为不可变 dataclass，序列使用 tuple。
to_dict / from_dict 保证 JSON 报告可以还原为相等的 Report 对象。
"""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterator, Optional, Tuple

from errors import InvalidDateRange

FILE_STATUSES = ("added", "modified", "removed", "renamed")
REPORT_TYPES = ("quick", "enhanced")
DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class Signature:
    """作者 / 提交者信息"""

    name: str = ""
    email: str = ""
    timestamp: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Signature":
        data = data or {}
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            timestamp=data.get("timestamp") or data.get("date") or "",
        )


@dataclass(frozen=True)
class FileChange:
    """单个文件在一次提交中的变更"""

    path: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileChange":
        return cls(
            path=data["path"],
            status=data.get("status", "modified"),
            additions=data.get("additions", 0),
            deletions=data.get("deletions", 0),
            changes=data.get("changes", 0),
        )


@dataclass(frozen=True)
class CommitStats:
    additions: int = 0
    deletions: int = 0
    total: int = 0

    def __post_init__(self):
        if self.total != self.additions + self.deletions:
            raise ValueError(
                f"stats.total ({self.total}) != additions + deletions "
                f"({self.additions} + {self.deletions})"
            )


@dataclass(frozen=True)
class Commit:
    """规范化后的提交记录，构造后不再修改"""

    id: str
    message: str
    author: Signature
    committer: Signature
    changed_files: Tuple[FileChange, ...] = ()
    stats: CommitStats = field(default_factory=CommitStats)

    @property
    def title(self) -> str:
        return self.message.strip().split("\n")[0].strip()

    @property
    def body(self) -> str:
        parts = self.message.strip().split("\n", 1)
        return parts[1].strip() if len(parts) > 1 else ""

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def net_changes(self) -> int:
        return self.stats.additions - self.stats.deletions

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        return cls(
            id=data["id"],
            message=data.get("message", ""),
            author=Signature.from_dict(data.get("author")),
            committer=Signature.from_dict(data.get("committer")),
            changed_files=tuple(
                FileChange.from_dict(f) for f in data.get("changed_files", [])
            ),
            stats=CommitStats(**data.get("stats", {})),
        )


@dataclass(frozen=True)
class DateRange:
    """闭区间日期范围 [start, end]"""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidDateRange(
                f"起始日期不能晚于结束日期: {self.start} > {self.end}"
            )

    @classmethod
    def parse(cls, from_str: str, to_str: Optional[str] = None) -> "DateRange":
        """严格解析 YYYY-MM-DD；to_str 为空时表示单日"""
        to_str = to_str or from_str
        try:
            start = datetime.strptime(from_str, DATE_FORMAT).date()
            end = datetime.strptime(to_str, DATE_FORMAT).date()
        except (TypeError, ValueError):
            raise InvalidDateRange(
                f"日期格式无效: '{from_str}' / '{to_str}'，请使用 YYYY-MM-DD"
            )
        return cls(start, end)

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end

    @property
    def label(self) -> str:
        if self.is_single_day:
            return self.start.isoformat()
        return f"{self.start.isoformat()} to {self.end.isoformat()}"

    @property
    def token(self) -> str:
        """用于文件名的日期片段"""
        if self.is_single_day:
            return self.start.isoformat()
        return f"{self.start.isoformat()}-to-{self.end.isoformat()}"

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "DateRange":
        return cls.parse(data["from"], data["to"])


@dataclass(frozen=True)
class RepositoryIdentity:
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def https_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"

    @property
    def ssh_url(self) -> str:
        return f"git@github.com:{self.owner}/{self.repo}.git"

    def api_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def to_dict(self) -> Dict[str, str]:
        return {"owner": self.owner, "repo": self.repo}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "RepositoryIdentity":
        return cls(owner=data["owner"], repo=data["repo"])


@dataclass(frozen=True)
class ContributorStats:
    name: str
    email: str = ""
    commits: int = 0
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class FileStatistics:
    path: str
    changes: int = 0
    additions: int = 0
    deletions: int = 0
    commits: int = 0


@dataclass(frozen=True)
class Aggregate:
    """提交集合的汇总视图 (每次从提交序列重新计算)"""

    total_commits: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    net_changes: int = 0
    average_changes_per_commit: int = 0
    top_contributors: Tuple[ContributorStats, ...] = ()
    file_statistics: Tuple[FileStatistics, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Aggregate":
        return cls(
            total_commits=data.get("total_commits", 0),
            total_additions=data.get("total_additions", 0),
            total_deletions=data.get("total_deletions", 0),
            net_changes=data.get("net_changes", 0),
            average_changes_per_commit=data.get("average_changes_per_commit", 0),
            top_contributors=tuple(
                ContributorStats(**c) for c in data.get("top_contributors", [])
            ),
            file_statistics=tuple(
                FileStatistics(**f) for f in data.get("file_statistics", [])
            ),
        )


@dataclass(frozen=True)
class Report:
    """
    一次请求生成的报告。
    analyses 与 commits 一一对应 (仅 enhanced 报告)；rendered_body 在渲染后通过 replace 填入。
    """

    repository: RepositoryIdentity
    date_range: Optional[DateRange]
    commits: Tuple[Commit, ...]
    aggregate: Aggregate
    branch: str = "main"
    report_type: str = "quick"
    analyses: Tuple[str, ...] = ()
    format: str = "text"
    created_at: str = ""
    author_filter: Optional[str] = None
    rendered_body: str = ""

    @property
    def range_label(self) -> str:
        return self.date_range.label if self.date_range else "all history"

    @property
    def range_token(self) -> str:
        return self.date_range.token if self.date_range else "all"

    def analysis_for(self, index: int) -> Optional[str]:
        if index < len(self.analyses):
            return self.analyses[index]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.repository.to_dict(),
            "date_range": self.date_range.to_dict() if self.date_range else None,
            "branch": self.branch,
            "report_type": self.report_type,
            "format": self.format,
            "created_at": self.created_at,
            "author_filter": self.author_filter,
            "aggregate": self.aggregate.to_dict(),
            "commits": [c.to_dict() for c in self.commits],
            "analyses": list(self.analyses),
            "rendered_body": self.rendered_body,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        date_range = data.get("date_range")
        return cls(
            repository=RepositoryIdentity.from_dict(data["repository"]),
            date_range=DateRange.from_dict(date_range) if date_range else None,
            commits=tuple(Commit.from_dict(c) for c in data.get("commits", [])),
            aggregate=Aggregate.from_dict(data.get("aggregate", {})),
            branch=data.get("branch", "main"),
            report_type=data.get("report_type", "quick"),
            analyses=tuple(data.get("analyses", [])),
            format=data.get("format", "text"),
            created_at=data.get("created_at", ""),
            author_filter=data.get("author_filter"),
            rendered_body=data.get("rendered_body", ""),
        )


@dataclass(frozen=True)
class ReportResult:
    """交给 CLI 边界的结果"""

    report: Report
    content: bytes
    filename: str
    saved_path: Optional[str] = None
