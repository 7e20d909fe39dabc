import unittest
from unittest.mock import patch

from backend.app.utils.logging.logger import (
    ERROR_WORD,
    WARNING_WORD,
    default_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)


# Tests for the logging helpers
class TestLogHelpers(unittest.TestCase):

    # should use the application logger
    def test_logger_name(self):
        self.assertEqual(default_logger.name, "rgpd_compliance")

    # should forward info messages with emoji markers replaced
    @patch.object(default_logger, "info")
    def test_log_info(self, mock_info):
        log_info("❌ Export %s", "registre")

        mock_info.assert_called_once_with(f"{ERROR_WORD} Export %s", "registre")

    # should mark errors and warnings with their words
    @patch.object(default_logger, "warning")
    @patch.object(default_logger, "error")
    def test_log_error_and_warning(self, mock_error, mock_warning):
        log_error("[OK] ❌ échec")
        log_warning("⚠️ quota")

        mock_error.assert_called_once_with(f"{ERROR_WORD} {ERROR_WORD} échec")

        mock_warning.assert_called_once_with(f"{WARNING_WORD} quota")

    # should emit debug messages at the info level
    @patch.object(default_logger, "info")
    def test_log_debug(self, mock_info):
        log_debug("[OK] snapshot")

        mock_info.assert_called_once_with("[DEBUG] snapshot")


if __name__ == "__main__":
    unittest.main()
