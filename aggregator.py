# aggregator.py
"""
[V5.0] 汇总统计
纯函数：由提交序列计算 Aggregate。排名使用稳定排序，并列时保持首次出现的顺序。
聚合本身不截断，截断只在渲染或显式查询 (top_contributors / top_files) 时发生。
"""
import math
from typing import Dict, List, Sequence, Tuple

from models import Aggregate, Commit, ContributorStats, FileStatistics


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _rank_contributors(commits: Sequence[Commit]) -> Tuple[ContributorStats, ...]:
    # 以作者姓名为键，字典保持插入顺序
    contributors: Dict[str, Dict] = {}
    for commit in commits:
        name = commit.author.name
        entry = contributors.setdefault(
            name,
            {
                "name": name,
                "email": commit.author.email,
                "commits": 0,
                "additions": 0,
                "deletions": 0,
            },
        )
        entry["commits"] += 1
        entry["additions"] += commit.stats.additions
        entry["deletions"] += commit.stats.deletions

    ranked = sorted(contributors.values(), key=lambda c: -c["commits"])
    return tuple(ContributorStats(**c) for c in ranked)


def _rank_files(commits: Sequence[Commit]) -> Tuple[FileStatistics, ...]:
    files: Dict[str, Dict] = {}
    for commit in commits:
        for change in commit.changed_files:
            entry = files.setdefault(
                change.path,
                {
                    "path": change.path,
                    "changes": 0,
                    "additions": 0,
                    "deletions": 0,
                    "commits": 0,
                },
            )
            entry["changes"] += change.changes or 0
            entry["additions"] += change.additions or 0
            entry["deletions"] += change.deletions or 0
            entry["commits"] += 1

    ranked = sorted(files.values(), key=lambda f: -f["changes"])
    return tuple(FileStatistics(**f) for f in ranked)


def summarize(commits: Sequence[Commit]) -> Aggregate:
    """计算提交集合的汇总；空输入返回全零的 Aggregate"""
    if not commits:
        return Aggregate()

    total_commits = len(commits)
    total_additions = sum(c.stats.additions for c in commits)
    total_deletions = sum(c.stats.deletions for c in commits)

    return Aggregate(
        total_commits=total_commits,
        total_additions=total_additions,
        total_deletions=total_deletions,
        net_changes=total_additions - total_deletions,
        average_changes_per_commit=_round_half_up(
            (total_additions + total_deletions) / total_commits
        ),
        top_contributors=_rank_contributors(commits),
        file_statistics=_rank_files(commits),
    )


def top_contributors(aggregate: Aggregate, limit: int = 5) -> List[ContributorStats]:
    return list(aggregate.top_contributors[:limit])


def top_files(aggregate: Aggregate, limit: int = 10) -> List[FileStatistics]:
    return list(aggregate.file_statistics[:limit])
