"""
optiondesk - 期权策略交易记录与风险指标服务
"""

__version__ = "0.1.0"
