"""
Shared fixtures: temporary SQLite store with deterministic engine functions
"""

import pytest
from sqlalchemy import event, insert
from sqlalchemy.pool import Pool

from optiondesk.backends import SqlBackend
from optiondesk.config import (
    ApiConfig,
    AuditConfig,
    Config,
    DatabaseConfig,
    LoggingConfig,
)
from optiondesk.database import DatabaseManager, Stock, User
from optiondesk.records import CalculationParams, TransactionRequest


def fake_breakeven(strategy_type, current_price, strike_price, premium):
    """测试用的盈亏平衡点公式，未知策略抛异常（模拟引擎拒绝）"""
    if strategy_type == "Protective Put":
        return current_price + premium
    if strategy_type == "Covered Call":
        return current_price - premium
    if strategy_type == "Cash Secured Put":
        return strike_price - premium
    raise ValueError(f"Unsupported strategy type: {strategy_type}")


def fake_risk_rate(strategy_type, current_price, strike_price, premium):
    """测试用的风险率公式"""
    if strategy_type == "Protective Put":
        return (current_price - strike_price + premium) / current_price
    if strategy_type == "Covered Call":
        return (current_price - premium) / current_price
    if strategy_type == "Cash Secured Put":
        return (strike_price - premium) / strike_price
    raise ValueError(f"Unsupported strategy type: {strategy_type}")


@pytest.fixture
def engine_functions():
    """在每个新的 SQLite 连接上注册 calculate_breakeven / calculate_risk_rate"""

    def register(dbapi_conn, connection_record):
        dbapi_conn.create_function("calculate_breakeven", 4, fake_breakeven)
        dbapi_conn.create_function("calculate_risk_rate", 4, fake_risk_rate)

    event.listen(Pool, "connect", register)
    yield
    event.remove(Pool, "connect", register)


@pytest.fixture
def db_config(tmp_path):
    """临时数据库配置（小连接池，短等待）"""
    return DatabaseConfig(
        url=f"sqlite:///{tmp_path / 'optiondesk_test.db'}",
        pool_min=1,
        pool_max=2,
        acquire_timeout=0.2,
        shutdown_timeout=0.5,
    )


@pytest.fixture
def app_config(db_config):
    """完整配置（不写日志文件）"""
    return Config(
        database=db_config,
        audit=AuditConfig(),
        logging=LoggingConfig(level="INFO", file=None),
        api=ApiConfig(),
    )


@pytest.fixture
def backend():
    return SqlBackend(privileged_roles=("admin", "auditor"))


def seed_reference_data(db_manager):
    """写入测试用户和股票"""
    with db_manager.connection_scope() as conn:
        conn.execute(
            insert(User.__table__),
            [
                {"user_id": 1, "password": "hashed-1", "role": "user"},
                {"user_id": 2, "password": "hashed-2", "role": "admin"},
                {"user_id": 3, "password": "hashed-3", "role": "user"},
            ],
        )
        conn.execute(
            insert(Stock.__table__),
            [
                {"stock_id": 1, "ticker": "AAPL", "current_price": 175.0, "volatility": 0.25},
                {"stock_id": 2, "ticker": "TSLA", "current_price": 48.0, "volatility": 0.55},
            ],
        )
        conn.commit()


@pytest.fixture
def db_manager(db_config, backend, engine_functions):
    """已初始化并建好表的连接池管理器"""
    manager = DatabaseManager(db_config, session_reset=backend.reset_session)
    manager.initialize()
    manager.create_tables()
    seed_reference_data(manager)
    yield manager
    manager.shutdown()


@pytest.fixture
def sample_request():
    """有效的交易请求"""
    return TransactionRequest(
        user_id=1,
        stock_id=2,
        strategy_type="Protective Put",
        strike_price=50.0,
        premium=3.0,
        maturity_time=30,
        stock_quantity=100,
    )


@pytest.fixture
def sample_params():
    """有效的编排参数"""
    return CalculationParams(
        user_id=1,
        stock_id=2,
        strategy_type="Protective Put",
        strike_price=50.0,
        premium=3.0,
        maturity_time=30,
        stock_quantity=100,
        current_price=48.0,
    )


@pytest.fixture
def seed():
    """返回写入测试数据的函数（用于 API 测试里由 lifespan 创建的连接池）"""
    return seed_reference_data
