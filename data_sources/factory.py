import logging
from context import RunContext
from errors import ConfigurationError
from .base import ChangeSource
from .github_api import GitHubAPIDataSource

logger = logging.getLogger(__name__)


def get_data_source(context: RunContext) -> ChangeSource:
    """
    [V4.5] 数据源工厂
    [V5.0] 只支持远程 GitHub API；缺少 Token 属于边界上的配置错误。
    """
    client_config = context.global_config.build_client_config(context.token)
    if not client_config.token:
        raise ConfigurationError(
            "未配置 GITHUB_TOKEN。请在 .env 中设置，或使用 --token 传入。"
        )

    logger.info(
        f"🔌 [Factory] 初始化数据源: GitHub API ({client_config.api_base_url}, "
        f"per_page={client_config.per_page}, workers={client_config.max_workers})"
    )
    return GitHubAPIDataSource(client_config)
