# data_sources/github_api.py
import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import requests

from .base import ChangeSource
from config import ClientConfig
from errors import (
    CommitNotFound,
    DetailFetchFailed,
    InvalidRepositoryReference,
    UpstreamUnavailable,
)
from models import (
    FILE_STATUSES,
    Commit,
    CommitStats,
    FileChange,
    RepositoryIdentity,
    Signature,
)

logger = logging.getLogger(__name__)

# git@github.com:owner/repo.git 或 ssh://git@github.com/owner/repo.git
_SSH_PATTERN = re.compile(r"^(?:ssh://)?git@[^:/]+[:/](?P<path>.+)$")

# 上游可能返回的其他状态统一归为 modified
_STATUS_ALIASES = {"copied": "modified", "changed": "modified", "unchanged": "modified"}


def parse_repository_reference(reference: str) -> RepositoryIdentity:
    """
    从仓库地址中解析 owner/repo。
    支持 https://host/owner/repo(.git) 和 git@host:owner/repo(.git)。
    """
    if not reference or not isinstance(reference, str):
        raise InvalidRepositoryReference("仓库地址不能为空")

    value = reference.strip()
    path: Optional[str] = None
    if value.lower().startswith(("https://", "http://")):
        parsed = urlparse(value)
        if parsed.netloc:
            path = parsed.path
    else:
        match = _SSH_PATTERN.match(value)
        if match:
            path = match.group("path")

    if path is None:
        raise InvalidRepositoryReference(
            f"无效的仓库地址: '{reference}' (应为 HTTPS 或 SSH 形式)"
        )

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRepositoryReference(
            f"无效的仓库地址: '{reference}' (期望的路径格式: owner/repo)"
        )
    return RepositoryIdentity(owner=parts[0], repo=parts[1])


def _normalize_status(raw: Optional[str]) -> str:
    status = (raw or "modified").lower()
    if status in FILE_STATUSES:
        return status
    return _STATUS_ALIASES.get(status, "modified")


def _normalize_file(raw: Dict[str, Any]) -> FileChange:
    path = raw.get("filename") or raw.get("path")
    if not path:
        raise ValueError("文件记录缺少 filename")
    return FileChange(
        path=path,
        status=_normalize_status(raw.get("status")),
        additions=int(raw.get("additions") or 0),
        deletions=int(raw.get("deletions") or 0),
        # 上游省略 changes 时默认为 0
        changes=int(raw.get("changes") or 0),
    )


def _normalize_signature(raw: Optional[Dict[str, Any]]) -> Signature:
    raw = raw or {}
    return Signature(
        name=raw.get("name") or "",
        email=raw.get("email") or "",
        timestamp=raw.get("date") or raw.get("timestamp") or "",
    )


def normalize_commit(payload: Dict[str, Any]) -> Commit:
    """
    将上游响应规范化为 Commit。
    兼容详情接口的结构 (sha / commit.author / files / stats)
    以及已经扁平化的结构 (id / author / changed_files)。
    """
    if not isinstance(payload, dict):
        raise ValueError(f"提交数据格式无效: {type(payload).__name__}")

    commit_id = payload.get("sha") or payload.get("id")
    if not commit_id:
        raise ValueError("提交数据缺少 sha")

    inner = payload.get("commit")
    if not isinstance(inner, dict):
        inner = payload

    files_raw = payload.get("files")
    if files_raw is None:
        files_raw = payload.get("changed_files") or []
    files = tuple(_normalize_file(f) for f in files_raw)

    raw_stats = payload.get("stats")
    if raw_stats:
        additions = int(raw_stats.get("additions") or 0)
        deletions = int(raw_stats.get("deletions") or 0)
        total = raw_stats.get("total")
        total = additions + deletions if total is None else int(total)
    else:
        additions = sum(f.additions for f in files)
        deletions = sum(f.deletions for f in files)
        total = additions + deletions

    return Commit(
        id=commit_id,
        message=inner.get("message") or "",
        author=_normalize_signature(inner.get("author")),
        committer=_normalize_signature(inner.get("committer")),
        changed_files=files,
        # total 与 additions + deletions 不一致时在此抛出 ValueError
        stats=CommitStats(additions=additions, deletions=deletions, total=total),
    )


def _cancelled(cancel_event: Optional[threading.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class GitHubAPIDataSource(ChangeSource):
    """
    [V4.8] GitHub 远程数据源实现
    [V5.0] 直接调用 REST 接口 (requests)：
    - 分页获取提交列表，页不满即视为最后一页
    - 每个提交单独请求详情以获取文件统计，同一页内有界并发，结果按列表顺序返回
    - 详情失败：记录并丢弃该提交；列表页失败：停止分页并返回已累积的结果
    """

    def __init__(
        self,
        config: ClientConfig,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.config = config
        self._session_factory = session_factory

    def _commits_url(self, identity: RepositoryIdentity, commit_id: str = "") -> str:
        url = f"{self.config.api_base_url}{identity.api_path()}/commits"
        if commit_id:
            url = f"{url}/{commit_id}"
        return url

    def _get(self, session: requests.Session, url: str, params=None):
        return session.get(
            url,
            headers=self.config.headers,
            params=params,
            timeout=self.config.timeout,
        )

    # --- 公共接口 ---

    def fetch_range(
        self,
        identity: RepositoryIdentity,
        start: date,
        end: date,
        branch: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Commit]:
        # 上游的 until 是开区间，所以结束日期加一天
        params = {
            "sha": branch,
            "since": f"{start.isoformat()}T00:00:00Z",
            "until": f"{(end + timedelta(days=1)).isoformat()}T00:00:00Z",
        }
        logger.info(
            f"📅 [GitHub] 获取提交记录: {identity.full_name}@{branch} "
            f"({start.isoformat()} ~ {end.isoformat()})"
        )
        return self._collect(identity, params, cancel_event)

    def fetch_all(
        self,
        identity: RepositoryIdentity,
        branch: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Commit]:
        logger.info(f"📚 [GitHub] 获取全部提交历史: {identity.full_name}@{branch}")
        return self._collect(identity, {"sha": branch}, cancel_event)

    def fetch_one(self, identity: RepositoryIdentity, commit_id: str) -> Commit:
        url = self._commits_url(identity, commit_id)
        with self._session_factory() as session:
            try:
                response = self._get(session, url)
            except requests.RequestException as e:
                raise UpstreamUnavailable(f"获取提交 {commit_id} 失败: {e}") from e

            # GitHub 对不存在的 sha 返回 404 或 422
            if response.status_code in (404, 422):
                raise CommitNotFound(
                    f"提交不存在: {identity.full_name}@{commit_id}"
                )
            try:
                response.raise_for_status()
                return normalize_commit(response.json())
            except (requests.RequestException, ValueError, TypeError) as e:
                raise UpstreamUnavailable(f"获取提交 {commit_id} 失败: {e}") from e

    # --- 内部实现 ---

    def _collect(
        self,
        identity: RepositoryIdentity,
        params: Dict[str, str],
        cancel_event: Optional[threading.Event],
    ) -> List[Commit]:
        per_page = self.config.per_page
        commits: List[Commit] = []
        page = 1

        with self._session_factory() as session:
            while True:
                if _cancelled(cancel_event):
                    logger.warning(
                        f"⚠️ [GitHub] 收到取消信号，返回已获取的 {len(commits)} 个提交。"
                    )
                    break

                try:
                    summaries = self._list_page(session, identity, params, page)
                except UpstreamUnavailable as e:
                    if page == 1:
                        logger.error(f"❌ [GitHub] UpstreamUnavailable: {e}")
                        raise
                    logger.error(
                        f"❌ [GitHub] UpstreamUnavailable: {e} "
                        f"(停止分页，返回已获取的 {len(commits)} 个提交)"
                    )
                    break

                if not summaries:
                    break

                commits.extend(
                    self._fetch_details(session, identity, summaries, cancel_event)
                )
                logger.info(
                    f"   [GitHub] 第 {page} 页: {len(summaries)} 条，累计 {len(commits)} 个提交"
                )

                # 页不满即视为最后一页 (上游恰好返回整页的最后一页时会多请求一次空页)
                if len(summaries) < per_page:
                    break
                page += 1

        return commits

    def _list_page(
        self,
        session: requests.Session,
        identity: RepositoryIdentity,
        params: Dict[str, str],
        page: int,
    ) -> List[Dict[str, Any]]:
        query = dict(params)
        query["page"] = page
        query["per_page"] = self.config.per_page
        try:
            response = self._get(session, self._commits_url(identity), query)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise UpstreamUnavailable(f"获取提交列表失败 (page={page}): {e}") from e

        if not isinstance(data, list):
            raise UpstreamUnavailable(f"提交列表格式无效 (page={page})")
        return data

    def _fetch_detail(
        self, session: requests.Session, identity: RepositoryIdentity, sha: str
    ) -> Commit:
        try:
            response = self._get(session, self._commits_url(identity, sha))
            response.raise_for_status()
            return normalize_commit(response.json())
        except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
            raise DetailFetchFailed(sha, str(e)) from e

    def _fetch_detail_or_none(
        self,
        session: requests.Session,
        identity: RepositoryIdentity,
        sha: str,
        cancel_event: Optional[threading.Event],
    ) -> Optional[Commit]:
        if _cancelled(cancel_event):
            return None
        try:
            return self._fetch_detail(session, identity, sha)
        except DetailFetchFailed as e:
            logger.error(f"❌ [GitHub] DetailFetchFailed: {e} (已跳过该提交)")
            return None

    def _fetch_details(
        self,
        session: requests.Session,
        identity: RepositoryIdentity,
        summaries: List[Dict[str, Any]],
        cancel_event: Optional[threading.Event],
    ) -> List[Commit]:
        shas = []
        for summary in summaries:
            sha = summary.get("sha") if isinstance(summary, dict) else None
            if not sha:
                logger.error("❌ [GitHub] DetailFetchFailed: 列表项缺少 sha (已跳过)")
                continue
            shas.append(sha)

        workers = min(self.config.max_workers, len(shas))
        if workers <= 1:
            results = [
                self._fetch_detail_or_none(session, identity, sha, cancel_event)
                for sha in shas
            ]
        else:
            # 各线程共用同一个 Session：请求头和超时按请求传入，不修改 Session 状态，
            # 线程之间共享的只有 urllib3 连接池 (自带锁) 和 cookie jar (自带锁)
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(
                        self._fetch_detail_or_none, session, identity, sha, cancel_event
                    )
                    for sha in shas
                ]
                # 按提交列表顺序收集，而不是完成顺序
                results = [f.result() for f in futures]

        return [c for c in results if c is not None]
