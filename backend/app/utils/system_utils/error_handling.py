"""
Error handling for the compliance API.

Every route turns its exceptions into a JSON payload through
SecurityAwareErrorHandler. ComplianceError subclasses are expected business
failures: their French message is returned to the user with their own status
code. Any other exception is unexpected; the user only gets a generic message
and a reference identifier, while the full error is written, with personal
data scrubbed, to the detailed error log.
"""

import asyncio
import json
import os
import re
import time
import traceback
import uuid
from typing import Any, Dict, Optional, TypeVar, Union
from urllib.parse import urlparse, urlunparse

from fastapi import HTTPException

from backend.app.utils.constant.constant import (
    EMAIL_PATTERN,
    ERROR_LOG_PATH,
    ERROR_TYPE_MESSAGES,
    SAFE_MESSAGE,
    SENSITIVE_KEYWORDS,
    SERVICE_NAME,
    URL_PATTERNS,
)
from backend.app.utils.logging.logger import log_error, log_warning
from backend.app.utils.system_utils.exceptions import ComplianceError

T = TypeVar('T')

# Checked in order; the first matching class gives the status code.
BUILTIN_STATUS_CODES = (
    ((TimeoutError, asyncio.TimeoutError), 504),
    (ConnectionError, 502),
    ((ValueError, TypeError), 400),
    (PermissionError, 403),
    (FileNotFoundError, 404),
)

# Personal data patterns scrubbed from logged messages, French formats included.
PERSONAL_DATA_PATTERNS = (
    (EMAIL_PATTERN, "[EMAIL]"),
    (r"\b(?:\+33\s?|0)[1-9](?:[\s.-]?\d{2}){4}\b", "[PHONE]"),
    (r"\b[12]\s?\d{2}\s?\d{2}\s?\d{2}\s?\d{3}\s?\d{3}(?:\s?\d{2})?\b", "[NIR]"),
    (r"\b(?:\d{4}[ -]?){3}\d{4}\b", "[CREDIT_CARD]"),
    (r"\b(?:\d{1,3}\.){3}\d{1,3}\b", "[IP_ADDRESS]"),
)
PATH_PATTERN = r"(?:\/[\w\-. ]+)+\/[\w\-. ]+"
REDACTED_DETAILS = "Error details redacted for security"


class SecurityAwareErrorHandler:
    """Builds user-safe error payloads and keeps a scrubbed trace of each failure."""

    @staticmethod
    def _new_trace_id() -> str:
        return f"trace_{int(time.time())}_{uuid.uuid4().hex[:8]}"

    @staticmethod
    def _status_code_for(e: Exception) -> int:
        if isinstance(e, (ComplianceError, HTTPException)):
            return e.status_code
        for error_types, status_code in BUILTIN_STATUS_CODES:
            if isinstance(e, error_types):
                return status_code
        return 500

    @staticmethod
    def _public_message(e: Exception) -> str:
        """Message shown for an unexpected error: never its raw text."""
        if SecurityAwareErrorHandler.is_error_sensitive(e):
            return SAFE_MESSAGE
        if isinstance(e, HTTPException) and e.detail:
            return str(e.detail)
        return ERROR_TYPE_MESSAGES.get(type(e).__name__, ERROR_TYPE_MESSAGES["Exception"])

    @staticmethod
    def _payload(e: Exception, message: str, error_id: str, trace_id: str) -> Dict[str, Any]:
        return {
            "status": "error",
            "error": f"{message}. Reference ID: {error_id}",
            "error_type": type(e).__name__,
            "error_id": error_id,
            "trace_id": trace_id,
            "timestamp": time.time(),
        }

    @staticmethod
    def handle_api_gateway_error(
            e: Exception,
            operation_type: str,
            endpoint: str,
            additional_info: Optional[Dict[str, Any]] = None,
            trace_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error payload of an API call.

        Args:
            e: The exception raised by the route.
            operation_type: Route operation name, e.g. "api_create_breach".
            endpoint: Requested URL; credentials and query string are dropped before logging.
            additional_info: Extra fields merged into the payload and the log record.
            trace_id: Trace identifier to reuse.

        Returns:
            The payload, including the HTTP "status_code" to answer with.
        """
        error_id = str(uuid.uuid4())
        trace_id = trace_id or SecurityAwareErrorHandler._new_trace_id()
        safe_endpoint = SecurityAwareErrorHandler._sanitize_url(endpoint)
        status_code = SecurityAwareErrorHandler._status_code_for(e)

        if isinstance(e, ComplianceError):
            log_warning(f"[API] {operation_type} refused on {safe_endpoint} ({status_code}): {e.message}")
            message = e.message
        else:
            log_error(
                f"[ERROR] {operation_type} failed on {safe_endpoint} (ID: {error_id}, Trace: {trace_id}): "
                f"{SecurityAwareErrorHandler._sanitize_error_message(str(e))}"
            )
            context = {"endpoint": safe_endpoint, "trace_id": trace_id, **(additional_info or {})}
            SecurityAwareErrorHandler._log_detailed_error(
                error_id, type(e).__name__, str(e), operation_type, traceback.format_exc(), context
            )
            message = SecurityAwareErrorHandler._public_message(e)

        payload = SecurityAwareErrorHandler._payload(e, message, error_id, trace_id)
        payload["status_code"] = status_code
        if additional_info:
            payload.update(additional_info)
        return payload

    @staticmethod
    def handle_safe_error(
            e: Exception,
            operation_type: str,
            endpoint: Optional[str] = None,
            resource_id: str = "",
            default_return: Optional[T] = None,
            additional_info: Optional[Dict[str, Any]] = None,
            trace_id: Optional[str] = None
    ) -> Union[Dict[str, Any], T]:
        """
        Handle an error of any operation.

        Operations whose name contains "api" get an API payload. Other
        operations are logged and answer `default_return` when one is given.
        """
        trace_id = trace_id or SecurityAwareErrorHandler._new_trace_id()
        if "api" in operation_type:
            return SecurityAwareErrorHandler.handle_api_gateway_error(
                e, operation_type, endpoint or "", additional_info, trace_id
            )
        SecurityAwareErrorHandler.log_processing_error(e, operation_type, resource_id, trace_id)
        if default_return is not None:
            return default_return
        return SecurityAwareErrorHandler._payload(
            e, SecurityAwareErrorHandler._public_message(e), str(uuid.uuid4()), trace_id
        )

    @staticmethod
    def log_processing_error(
            e: Exception,
            operation_type: str,
            resource_id: str = "",
            trace_id: Optional[str] = None
    ) -> str:
        """
        Log a failure that is handled without reaching the user, e.g. an LLM fallback.

        Returns:
            The trace identifier of the log record.
        """
        error_id = str(uuid.uuid4())
        trace_id = trace_id or SecurityAwareErrorHandler._new_trace_id()
        log_error(
            f"[ERROR] {operation_type} failed (ID: {error_id}, Trace: {trace_id}): "
            f"{SecurityAwareErrorHandler._sanitize_error_message(str(e))}"
        )
        SecurityAwareErrorHandler._log_detailed_error(
            error_id, type(e).__name__, str(e), operation_type, traceback.format_exc(),
            {"resource_id": resource_id, "trace_id": trace_id}
        )
        return trace_id

    @staticmethod
    def _log_detailed_error(
            error_id: str,
            error_type: str,
            error_message: str,
            operation_type: str,
            stack_trace: str,
            additional_info: Optional[Dict[str, Any]] = None
    ) -> None:
        """Append one JSON line describing the error to ERROR_LOG_PATH."""
        sanitize = SecurityAwareErrorHandler._sanitize_error_message
        record = {
            "error_id": error_id,
            "timestamp": time.time(),
            "error_type": error_type,
            "operation_type": operation_type,
            "sanitized_message": sanitize(error_message),
            "stack_trace": stack_trace,
            "environment": os.environ.get("ENVIRONMENT", "development"),
            "service": SERVICE_NAME,
            "additional_info": {
                key: sanitize(value) if isinstance(value, str) else value
                for key, value in (additional_info or {}).items()
            },
        }
        try:
            os.makedirs(os.path.dirname(ERROR_LOG_PATH), exist_ok=True)
            with open(ERROR_LOG_PATH, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        except OSError as write_error:
            log_warning(f"[ERROR] Detailed error log unavailable: {write_error}")

    @staticmethod
    def _sanitize_error_message(message: str) -> str:
        """
        Scrub an error message before it is logged.

        Messages mentioning a sensitive keyword are replaced entirely. Otherwise
        paths keep their basename, and URLs and personal data are masked.
        """
        if not message:
            return "Error details not available"
        lowered = message.lower()
        if any(keyword in lowered for keyword in SENSITIVE_KEYWORDS):
            return REDACTED_DETAILS
        message = re.sub(PATH_PATTERN, lambda match: f"[PATH]/{os.path.basename(match.group(0))}", message)
        for pattern in URL_PATTERNS:
            message = re.sub(pattern, "[URL_REDACTED]", message)
        for pattern, placeholder in PERSONAL_DATA_PATTERNS:
            message = re.sub(pattern, placeholder, message)
        return message

    @staticmethod
    def _sanitize_url(url: str) -> str:
        """Keep scheme, host and path of a URL; drop credentials, query and fragment."""
        if not url or not isinstance(url, str):
            return "unknown_url"
        try:
            parsed = urlparse(url)
        except ValueError:
            return "invalid_url"
        return urlunparse((parsed.scheme, parsed.netloc.rsplit("@", 1)[-1], parsed.path, "", "", ""))

    @staticmethod
    def is_error_sensitive(e: Exception) -> bool:
        """Tell whether the text of an exception may reveal secrets, addresses or URLs."""
        text = str(e)
        if any(keyword in text.lower() for keyword in SENSITIVE_KEYWORDS):
            return True
        return any(re.search(pattern, text) for pattern in (EMAIL_PATTERN, *URL_PATTERNS))
