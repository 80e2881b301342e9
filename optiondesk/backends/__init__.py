"""
Store backends implementing the engine call contract
"""

from ..config import Config
from .base import StoreBackend, BREAKEVEN, RISK_RATE, METRIC_FUNCTIONS
from .sql_backend import SqlBackend


def create_backend(config: Config) -> StoreBackend:
    """
    根据配置创建存储后端

    Args:
        config: 全局配置

    Returns:
        StoreBackend实例
    """
    if config.database.backend == "oracle":
        # 只有配置了 Oracle 才需要 oracledb 驱动
        from .oracle_backend import OracleBackend
        return OracleBackend()

    return SqlBackend(privileged_roles=config.audit.privileged_roles)


__all__ = [
    'StoreBackend',
    'SqlBackend',
    'BREAKEVEN',
    'RISK_RATE',
    'METRIC_FUNCTIONS',
    'create_backend',
]
