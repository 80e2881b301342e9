"""
optiondesk
期权策略交易记录、风险指标计算与审计日志服务
"""

from setuptools import setup, find_packages
import os

# 读取 README 作为长描述
def read_long_description():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# 读取 requirements.txt
def read_requirements():
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            return [
                line.strip()
                for line in f
                if line.strip() and not line.startswith('#')
            ]
    return []

setup(
    name="optiondesk",
    version="0.1.0",
    author="optiondesk contributors",
    author_email="",
    description="期权策略交易记录、风险指标计算与审计日志服务",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",

    # 包配置
    packages=find_packages(exclude=['Tests', 'Tests.*', 'docs', 'examples']),
    python_requires=">=3.10",

    # 依赖配置
    install_requires=read_requirements(),

    # 额外依赖（可选）
    extras_require={
        'oracle': [
            'oracledb>=2.0.0',
        ],
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'httpx>=0.24.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.0.0',
        ],
    },

    # 分类信息
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial :: Investment",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: OS Independent",
    ],

    # 关键词
    keywords=[
        "options",
        "trading",
        "breakeven",
        "risk",
        "fastapi",
        "sqlalchemy",
    ],

    # 包数据
    package_data={
        'optiondesk.config': ['*.yaml'],
    },

    # 入口点（命令行工具）
    entry_points={
        'console_scripts': [
            'optiondesk-server=optiondesk.api.start_server:main',
            'optiondesk-init-db=optiondesk.database.init_database:main',
        ],
    },

    # 包含非Python文件
    include_package_data=True,

    # Zip安全
    zip_safe=False,
)
