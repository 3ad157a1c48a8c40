import logging
import os
import sys
import tempfile
import unittest
from unittest import mock

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils import config, logger  # noqa: E402


class LogFileTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "pos.log")
        self.name = "log-file-test"
        logger._file_console = None

    def tearDown(self):
        logging.getLogger(self.name).handlers.clear()
        logger.close_log_file()
        self.tmpdir.cleanup()

    def test_log_file_is_closed_on_exit(self):
        with mock.patch.object(config, "LOG_FILE", self.path):
            log = logger.get_logger(self.name)
            log.info("hello from the admin console")
            opened = logger._file_console.file
            self.assertFalse(opened.closed)

            logger.close_log_file()

        self.assertTrue(opened.closed)
        self.assertIsNone(logger._file_console)
        with open(self.path, encoding="utf-8") as f:
            self.assertIn("hello from the admin console", f.read())

    def test_close_without_log_file(self):
        with mock.patch.object(config, "LOG_FILE", None):
            logger.get_logger(self.name)
            self.assertIsNone(logger._file_console)
            logger.close_log_file()
        self.assertIsNone(logger._file_console)


if __name__ == "__main__":
    unittest.main()
