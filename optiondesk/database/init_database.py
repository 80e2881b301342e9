#!/usr/bin/env python3
"""
数据库初始化脚本

    python -m optiondesk.database.init_database [--config path] [--drop]
"""

import argparse

from tabulate import tabulate

from ..backends import create_backend
from ..config import get_config, reload_config
from .connection import DatabaseManager


def main():
    """初始化数据库"""
    parser = argparse.ArgumentParser(description="Create the optiondesk schema")
    parser.add_argument("--config", help="YAML配置文件路径")
    parser.add_argument("--drop", action="store_true", help="先删除现有表（危险操作！）")
    args = parser.parse_args()

    config = reload_config(args.config) if args.config else get_config()
    backend = create_backend(config)
    db_manager = DatabaseManager(config.database, session_reset=backend.reset_session)

    print("=" * 80)
    print("数据库初始化")
    print("=" * 80)
    print()

    db_manager.initialize()
    try:
        if args.drop:
            print("⚠️  删除现有表...")
            db_manager.drop_tables()

        print("✓ 创建数据库表...")
        db_manager.create_tables()

        stats = db_manager.get_stats()
    finally:
        db_manager.shutdown()

    print()
    print("数据库信息:")
    print("-" * 80)

    info_table = [
        ['数据库', stats['url']],
        ['用户数', stats['users_count']],
        ['股票数', stats['stocks_count']],
        ['交易记录数', stats['transactions_count']],
        ['审计日志数', stats['audit_logs_count']],
    ]

    print(tabulate(info_table, headers=['项目', '值'], tablefmt='presto'))

    print()
    print("=" * 80)
    print("数据库初始化完成！")
    print("=" * 80)


if __name__ == "__main__":
    main()
