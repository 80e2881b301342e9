"""
Unit tests for optiondesk/utils/logger.py
"""

import logging

from optiondesk.utils import get_logger, setup_logger
from optiondesk.utils.logger import ROOT_LOGGER_NAME


class TestLogger:
    """测试日志配置"""

    def test_module_logger_shares_root_handlers(self):
        """测试子模块 logger 通过根 logger 输出"""
        logger = get_logger("optiondesk.transactions.writer")
        root = logging.getLogger(ROOT_LOGGER_NAME)

        assert logger.name == "optiondesk.transactions.writer"
        assert not logger.handlers
        assert logger.propagate is True
        assert root.handlers

    def test_setup_logger_with_file(self, tmp_path):
        """测试写入日志文件"""
        log_file = tmp_path / "logs" / "optiondesk.log"
        logger = setup_logger("optiondesk_test_file", log_file=str(log_file))

        logger.info("pool started")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.exists()
        assert "pool started" in log_file.read_text(encoding="utf-8")
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def test_setup_logger_replaces_handlers(self):
        """测试重复配置不会叠加 handler"""
        setup_logger("optiondesk_test_repeat")
        logger = setup_logger("optiondesk_test_repeat", level=logging.DEBUG)

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        logger.handlers.clear()

    def test_setup_logger_accepts_level_name(self):
        """测试级别可以用名称传入（来自 LoggingConfig）"""
        logger = setup_logger("optiondesk_test_level_name", level="warning")

        assert logger.level == logging.WARNING
        assert all(handler.level == logging.WARNING for handler in logger.handlers)
        logger.handlers.clear()
