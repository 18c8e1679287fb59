# errors.py
"""
[V5.0] 错误分类
- 校验类错误 (仓库地址、日期范围、缺少凭证) 在任何网络请求之前抛出。
- DetailFetchFailed / AnalyzerUnavailable 只在内部使用：记录日志后降级，不向调用方传播。
"""


class CommitReportError(Exception):
    """所有面向用户的错误的基类，CLI 边界只捕获这一类。"""


class ConfigurationError(CommitReportError):
    """缺少必需的配置 (例如 GITHUB_TOKEN)"""


class InvalidRepositoryReference(CommitReportError):
    """仓库地址既不是 HTTPS 也不是 SSH 形式，或路径不是 owner/repo"""


class InvalidDateRange(CommitReportError):
    """日期无法解析，或 from > to"""


class UpstreamUnavailable(CommitReportError):
    """列表页请求失败"""


class DetailFetchFailed(CommitReportError):
    """单个提交详情获取失败 (记录并丢弃)"""

    def __init__(self, commit_id: str, reason: str):
        super().__init__(f"获取提交详情失败 ({commit_id}): {reason}")
        self.commit_id = commit_id
        self.reason = reason


class AnalyzerUnavailable(CommitReportError):
    """外部分析器调用失败 (回退到启发式分析)"""


class CommitNotFound(CommitReportError):
    """指定的提交不存在"""
