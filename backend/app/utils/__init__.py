"""
Utilities package of the compliance API.

This package contains utility functions and helpers used across the
compliance services.
"""

from backend.app.utils.logging.logger import default_logger

# Export the default logger
__all__ = ["default_logger"]
