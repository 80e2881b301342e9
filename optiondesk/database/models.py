"""
SQLAlchemy schema for the backing store
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    Index,
    DDL,
    event,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    """用户（密码哈希由外部凭证服务写入）"""
    __tablename__ = 'users'

    user_id = Column(Integer, primary_key=True, autoincrement=False)
    password = Column(String(100), nullable=False)
    role = Column(String(30), nullable=False, default='user', server_default='user')

    def __repr__(self):
        return f"<User(user_id={self.user_id}, role={self.role})>"


class Stock(Base):
    """股票目录（由外部 upsert 维护）"""
    __tablename__ = 'stocks'

    stock_id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(20), nullable=False, unique=True)
    current_price = Column(Float)
    volatility = Column(Float)

    def __repr__(self):
        return f"<Stock(stock_id={self.stock_id}, ticker={self.ticker})>"


class Transaction(Base):
    """期权策略交易记录"""
    __tablename__ = 'transactions'

    transaction_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.user_id'), nullable=False)
    stock_id = Column(Integer, ForeignKey('stocks.stock_id'), nullable=False)

    strategy_type = Column(String(30), nullable=False)
    strike_price = Column(Float, nullable=False)
    premium = Column(Float, nullable=False)
    maturity_time = Column(Integer, nullable=False)
    stock_quantity = Column(Integer, nullable=False)

    # 创建时间由数据库生成
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    __table_args__ = (
        Index('idx_transactions_user', 'user_id', 'transaction_id'),
    )

    def __repr__(self):
        return (f"<Transaction(transaction_id={self.transaction_id}, user_id={self.user_id}, "
                f"strategy_type={self.strategy_type})>")


class AuditLog(Base):
    """审计日志（只读，由数据库触发器写入）"""
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(20), nullable=False)
    table_name = Column(String(30), nullable=False)
    timestamp = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    user_id = Column(Integer, ForeignKey('users.user_id'), nullable=True, index=True)

    def __repr__(self):
        return (f"<AuditLog(id={self.id}, action={self.action}, "
                f"table={self.table_name}, user_id={self.user_id})>")


# SQLite 下由触发器写审计日志；Oracle/PostgreSQL 的触发器随数据库包一起部署
_SQLITE_AUDIT_TRIGGERS = (
    """
    CREATE TRIGGER IF NOT EXISTS trg_transactions_audit
    AFTER INSERT ON transactions
    BEGIN
        INSERT INTO audit_logs (action, table_name, timestamp, user_id)
        VALUES ('INSERT', 'TRANSACTIONS', CURRENT_TIMESTAMP, NEW.user_id);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_users_audit
    AFTER INSERT ON users
    BEGIN
        INSERT INTO audit_logs (action, table_name, timestamp, user_id)
        VALUES ('INSERT', 'USERS', CURRENT_TIMESTAMP, NEW.user_id);
    END
    """,
)

for _statement in _SQLITE_AUDIT_TRIGGERS:
    event.listen(
        Base.metadata,
        'after_create',
        DDL(_statement).execute_if(dialect='sqlite'),
    )
