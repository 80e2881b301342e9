"""
Database connection pool and scoped connection management
"""

import time
from pathlib import Path
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Optional, TypeVar

from sqlalchemy import create_engine, event, func, select, Engine
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.exc import DisconnectionError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

from ..config import DatabaseConfig
from ..errors import PoolError
from ..utils.logger import get_logger
from .models import AuditLog, Base, Stock, Transaction, User

logger = get_logger(__name__)

T = TypeVar('T')

# 连接会话上下文中保存角色的 key（存放在 DBAPI 连接对应的 info 字典里）
SESSION_CONTEXT_KEY = 'optiondesk.role_context'

SessionReset = Callable[[Any], None]


class DatabaseManager:
    """数据库连接池管理器"""

    def __init__(self, config: DatabaseConfig, session_reset: Optional[SessionReset] = None):
        """
        初始化连接池管理器（不连接数据库，连接在 initialize() 中建立）

        Args:
            config: 数据库配置
            session_reset: 每次从池中借出连接时调用，用于清理数据库侧的会话状态
        """
        self.config = config
        self.engine: Optional[Engine] = None
        self._session_reset = session_reset

    @property
    def is_sqlite(self) -> bool:
        return self.config.url.startswith('sqlite')

    def initialize(self) -> None:
        """
        创建连接池并预先建立 pool_min 个连接

        Raises:
            PoolError: 数据库不可达或配置无效，调用方不应继续提供服务
        """
        if self.engine is not None:
            return

        if self.is_sqlite and ':memory:' in self.config.url:
            raise PoolError("In-memory SQLite cannot back a connection pool; use a file path")

        if self.is_sqlite:
            database = make_url(self.config.url).database
            if database:
                Path(database).parent.mkdir(parents=True, exist_ok=True)

        try:
            engine = self._create_engine()
        except SQLAlchemyError as e:
            raise PoolError(f"Invalid database configuration: {e}") from e

        try:
            self._warm_up(engine)
        except SQLAlchemyError as e:
            engine.dispose()
            raise PoolError(f"Cannot initialize connection pool: {e}") from e

        self.engine = engine
        logger.info(
            "Connection pool started (min=%d, max=%d, acquire_timeout=%.1fs)",
            self.config.pool_min, self.config.pool_max, self.config.acquire_timeout,
        )

    def _create_engine(self) -> Engine:
        """创建数据库引擎"""
        connect_args = {'check_same_thread': False} if self.is_sqlite else {}

        engine = create_engine(
            self.config.url,
            poolclass=QueuePool,
            pool_size=self.config.pool_min,
            max_overflow=self.config.pool_max - self.config.pool_min,
            pool_timeout=self.config.acquire_timeout,
            pool_recycle=self.config.pool_recycle,
            pool_pre_ping=True,
            echo=self.config.echo,
            connect_args=connect_args,
        )

        if self.is_sqlite:
            # 启用外键约束（SQLite默认关闭）
            @event.listens_for(engine, "connect")
            def set_sqlite_pragma(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        event.listen(engine, "checkout", self._on_checkout)
        return engine

    def _warm_up(self, engine: Engine) -> None:
        """同时打开 pool_min 个连接再归还，确认数据库可达"""
        connections = []
        try:
            for _ in range(self.config.pool_min):
                connections.append(engine.connect())
        finally:
            for connection in connections:
                connection.close()

    def _on_checkout(self, dbapi_connection, connection_record, connection_proxy) -> None:
        # 物理连接会被复用：每次借出都清掉上一个使用者的角色上下文
        connection_record.info.pop(SESSION_CONTEXT_KEY, None)
        if self._session_reset is not None:
            try:
                self._session_reset(dbapi_connection)
            except Exception as e:
                # 丢弃这个物理连接，连接池会换一个新连接重试
                raise DisconnectionError(f"Cannot reset session state: {e}") from e

    def acquire(self) -> Connection:
        """
        从连接池借出一个连接

        池耗尽时最多阻塞 acquire_timeout 秒。

        Raises:
            PoolError: 未初始化、池耗尽或数据库不可达
        """
        if self.engine is None:
            raise PoolError("Connection pool is not initialized")

        try:
            return self.engine.connect()
        except PoolTimeoutError as e:
            raise PoolError(
                f"Connection pool exhausted: no connection available within "
                f"{self.config.acquire_timeout}s"
            ) from e
        except SQLAlchemyError as e:
            raise PoolError(f"Cannot acquire connection: {e}") from e

    def _release(self, connection: Connection) -> None:
        try:
            connection.close()
        except Exception as e:
            # 归还失败只记录，不能覆盖业务结果
            logger.error("Error releasing connection: %s", e)

    @contextmanager
    def connection_scope(self) -> Generator[Connection, None, None]:
        """
        提供一个逻辑操作范围内独占的连接

        Usage:
            with db_manager.connection_scope() as conn:
                conn.execute(...)
                # 无论成功还是异常，退出时连接都会归还一次
        """
        connection = self.acquire()
        try:
            yield connection
        finally:
            self._release(connection)

    def run(self, work: Callable[[Connection], T]) -> T:
        """在一个连接范围内执行 work(connection)"""
        with self.connection_scope() as connection:
            return work(connection)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        等待借出的连接归还后关闭连接池

        超时或关闭失败只记录日志，不抛出异常。

        Args:
            timeout: 等待秒数，默认使用配置中的 shutdown_timeout
        """
        if self.engine is None:
            return

        if timeout is None:
            timeout = self.config.shutdown_timeout

        pool = self.engine.pool
        deadline = time.monotonic() + timeout
        while pool.checkedout() > 0 and time.monotonic() < deadline:
            time.sleep(0.05)

        outstanding = pool.checkedout()
        if outstanding:
            logger.warning(
                "%d connection(s) still checked out after %.1fs, closing pool anyway",
                outstanding, timeout,
            )

        try:
            self.engine.dispose()
            logger.info("Connection pool closed")
        except Exception as e:
            logger.error("Error closing connection pool: %s", e)
        finally:
            self.engine = None

    def create_tables(self):
        """创建所有表"""
        if self.engine is None:
            raise PoolError("Connection pool is not initialized")
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """删除所有表（危险操作！）"""
        if self.engine is None:
            raise PoolError("Connection pool is not initialized")
        Base.metadata.drop_all(bind=self.engine)

    def get_stats(self) -> Dict[str, Any]:
        """获取各表记录数"""
        with self.connection_scope() as conn:
            stats = {
                'url': self.engine.url.render_as_string(hide_password=True),
                'users_count': conn.execute(select(func.count()).select_from(User.__table__)).scalar_one(),
                'stocks_count': conn.execute(select(func.count()).select_from(Stock.__table__)).scalar_one(),
                'transactions_count': conn.execute(
                    select(func.count()).select_from(Transaction.__table__)
                ).scalar_one(),
                'audit_logs_count': conn.execute(
                    select(func.count()).select_from(AuditLog.__table__)
                ).scalar_one(),
            }

        return stats

    def get_pool_status(self) -> Dict[str, Any]:
        """获取连接池状态"""
        if self.engine is None:
            return {'initialized': False}

        pool = self.engine.pool
        return {
            'initialized': True,
            'size': pool.size(),
            'checked_out': pool.checkedout(),
            'overflow': pool.overflow(),
            'max': self.config.pool_max,
        }
