"""
Helper functions package.

This package contains the Gemini client wrapper and the text and JSON helpers
used by the compliance services.
"""
from backend.app.utils.helpers.text_utils import TextUtils
from backend.app.utils.helpers.json_helper import coerce_to_schema, parse_iso_datetime
from backend.app.utils.helpers.gemini_helper import GeminiHelper, gemini_helper

# Export classes and functions
__all__ = [
    "TextUtils",
    "coerce_to_schema",
    "parse_iso_datetime",
    "GeminiHelper",
    "gemini_helper",
]
