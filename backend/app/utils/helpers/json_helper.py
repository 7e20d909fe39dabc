"""
JSON handling utilities for LLM answers and request payloads.

This module provides functions to:
    - Coerce a parsed LLM answer to the shape the services expect.
    - Convert loosely typed values (strings, lists, booleans) to their declared type.
    - Parse ISO-8601 dates coming from API payloads.

LLM answers are untrusted: fields may be missing, renamed to camelCase or
typed as plain strings. Coercion never raises on bad content; it falls back
to the declared defaults instead.
"""

import copy
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from backend.app.utils.logging.logger import log_warning
from backend.app.utils.system_utils.exceptions import BusinessRuleError

_TRUE_STRINGS = {"true", "oui", "yes", "1", "vrai", "required", "obligatoire"}


def _camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def to_snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of a dict with camelCase keys converted to snake_case."""
    return {_camel_to_snake(key): value for key, value in data.items()}


def coerce_bool(value: Any) -> bool:
    """Interpret booleans answered as text ("oui", "true") or numbers."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def coerce_list(value: Any) -> List[Any]:
    """Interpret a list answered as a comma or newline separated string."""
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item not in (None, "")]
    if isinstance(value, str):
        parts = re.split(r"[\n,;]", value)
        return [part.strip(" -•\t") for part in parts if part.strip(" -•\t")]
    return [value]


def coerce_to_schema(data: Optional[Dict[str, Any]], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill missing keys and coerce values to the type of their default.

    Args:
        data: The parsed LLM answer (may be None or use camelCase keys).
        defaults: Expected keys with a default value whose type drives coercion.

    Returns:
        A dict holding exactly the keys of `defaults`.
    """
    source = to_snake_keys(data) if isinstance(data, dict) else {}
    result = {}
    for key, default in defaults.items():
        value = source.get(key)
        if value is None:
            result[key] = copy.deepcopy(default)
        elif isinstance(default, bool):
            result[key] = coerce_bool(value)
        elif isinstance(default, list):
            result[key] = coerce_list(value)
        elif isinstance(default, (int, float)) and not isinstance(default, bool):
            try:
                result[key] = type(default)(float(value))
            except (TypeError, ValueError):
                log_warning(f"[JSON] Could not convert field '{key}', default used")
                result[key] = default
        elif isinstance(default, str):
            result[key] = value if isinstance(value, str) else str(value)
        else:
            result[key] = value
    return result


def parse_iso_datetime(value: Any, field: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string.

    Timezone-aware values are converted to naive UTC.

    Raises:
        BusinessRuleError: If the value is not a valid ISO date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise BusinessRuleError(f"Date invalide pour le champ {field}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
