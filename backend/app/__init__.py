"""
RGPD compliance application package.

This package holds the API, the compliance services and their persistence
layer for small and medium French companies.
"""

from backend.app.utils.logging.logger import default_logger

logger = default_logger

__version__ = "1.0.0"
