"""Unit tests for logging_config module."""

import logging
import tempfile
import unittest
from pathlib import Path

from utils.logging_config import ROOT_LOGGER_NAME, get_logger, setup_logging


class TestSetupLogging(unittest.TestCase):
    """Test cases for setup_logging."""

    def tearDown(self):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def test_sets_level_and_console_handler(self):
        logger = setup_logging(level="debug")
        self.assertEqual(logger.name, ROOT_LOGGER_NAME)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 1)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()
        self.assertEqual(len(logger.handlers), 1)

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = Path(temp_dir) / 'logs' / 'axiom.log'
            logger = setup_logging(level="INFO", log_file=str(log_file), console=False)
            logger.info("hello")
            for handler in logger.handlers:
                handler.flush()
                handler.close()
            logger.handlers.clear()

            self.assertIn("hello", log_file.read_text())

    def test_unknown_level(self):
        with self.assertRaises(ValueError):
            setup_logging(level="LOUD")


class TestGetLogger(unittest.TestCase):

    def test_prefixes_module_names(self):
        self.assertEqual(get_logger('orchestrator.flow_manager').name, 'axiom.orchestrator.flow_manager')

    def test_keeps_axiom_names(self):
        self.assertEqual(get_logger('axiom.cli').name, 'axiom.cli')
        self.assertEqual(get_logger().name, 'axiom')


if __name__ == '__main__':
    unittest.main()
