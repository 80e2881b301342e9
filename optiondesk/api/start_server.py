#!/usr/bin/env python3
"""
启动FastAPI服务器
"""

import argparse

import uvicorn

from ..config import get_config, reload_config
from .main import create_app


def main():
    parser = argparse.ArgumentParser(description="Run the optiondesk API server")
    parser.add_argument("--config", help="YAML配置文件路径")
    args = parser.parse_args()

    config = reload_config(args.config) if args.config else get_config()
    app = create_app(config)

    print("=" * 80)
    print("启动 optiondesk API 服务")
    print("=" * 80)
    print("\n📡 服务地址:")
    print(f"   - API文档 (Swagger): http://localhost:{config.api.port}/docs")
    print(f"   - 健康检查:          http://localhost:{config.api.port}/health")
    print("\n按 Ctrl+C 停止服务\n")
    print("=" * 80 + "\n")

    # uvicorn 收到 SIGTERM/SIGINT 时会执行 lifespan 的关闭流程（归还并关闭连接池）
    uvicorn.run(
        app,
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower(),
        reload=False
    )


if __name__ == "__main__":
    main()
