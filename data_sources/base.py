import threading
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from models import Commit, RepositoryIdentity


class ChangeSource(ABC):
    """
    [V4.5] 数据源抽象基类
    [V5.0] 改为远程变更历史接口：按日期范围 / 全部历史 / 单个提交获取规范化的 Commit。
    """

    @abstractmethod
    def fetch_range(
        self,
        identity: RepositoryIdentity,
        start: date,
        end: date,
        branch: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Commit]:
        """
        获取 [start, end] 日期范围内的提交 (按上游返回顺序)。
        部分失败时返回已累积的结果。
        """
        pass

    @abstractmethod
    def fetch_all(
        self,
        identity: RepositoryIdentity,
        branch: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Commit]:
        """
        获取分支的全部历史，仅受上游分页限制。
        """
        pass

    @abstractmethod
    def fetch_one(self, identity: RepositoryIdentity, commit_id: str) -> Commit:
        """
        获取单个提交的详情；不存在时抛出 CommitNotFound。
        """
        pass
