"""
Constants for the compliance API.

This module defines configuration constants organized into several categories:
1. Environment and network settings (allowed origins).
2. File handling constants for reference document uploads.
3. Log and error handling constants, including patterns for detecting sensitive data
   and error messages.
"""

import os

# Allowed origins for CORS, read from the environment or default values.
ALLOWED_ORIGINS = os.environ.get(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5000,http://localhost:5173",
).split(",")

# Media type for JSON responses.
JSON_MEDIA_TYPE = "application/json"
# Media type for CSV exports.
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
# Maximum request body size accepted by the API (25 MB).
MAX_REQUEST_SIZE_BYTES = 25 * 1024 * 1024

# MIME type for PDF files.
PDF_MIME_TYPE = "application/pdf"
# Allowed MIME types for reference documents.
ALLOWED_MIME_TYPES = {
    "pdf": {PDF_MIME_TYPE, "application/x-pdf", "application/octet-stream"},
    "txt": {"text/plain", "application/octet-stream"},
}
# File signatures (magic bytes) for supported binary file types.
FILE_SIGNATURES = {"pdf": [(b"%PDF", 0)]}
# Mapping from file extension to MIME type.
EXTENSION_TO_MIME = {".pdf": PDF_MIME_TYPE, ".txt": "text/plain"}

# Text strings for log messages.
ERROR_WORD = "[ERROR]"
WARNING_WORD = "[WARNING]"

# Directory holding the application log file.
LOG_DIR = os.environ.get("LOG_DIR", "app/logs/app_log")
# File path for detailed error logs, read from the environment.
ERROR_LOG_PATH = os.environ.get(
    "ERROR_LOG_PATH", "app/logs/error_logs/detailed_errors.log"
)
# Service name, defaulting to 'rgpd_compliance' if not provided.
SERVICE_NAME = os.environ.get("SERVICE_NAME", "rgpd_compliance")
# Standard safe message to display when error details are redacted.
SAFE_MESSAGE = "Les détails de l'erreur ont été masqués pour des raisons de sécurité"

# Regex pattern for detecting email addresses.
EMAIL_PATTERN = r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"
# List of keywords considered sensitive in unexpected error messages.
SENSITIVE_KEYWORDS = [
    "password",
    "secret",
    "key",
    "token",
    "credential",
    "bearer",
    "authorization",
    "session",
    "sqlalchemy",
    "sqlite",
    "postgresql",
    "iban",
    "certificate",
    "privkey",
]
# List of URL patterns for recognizing and redacting sensitive URLs.
URL_PATTERNS = [
    r"https?://[^\s/$.?#].[^\s]*",  # Standard URLs.
    r"postgresql://[^\s]*",  # PostgreSQL URLs.
    r"mysql://[^\s]*",  # MySQL URLs.
    r"sqlite:///[^\s]*",  # SQLite URLs.
]

# Mapping from exception types to user-friendly error messages.
ERROR_TYPE_MESSAGES = {
    "ValueError": "Valeur invalide",
    "TypeError": "Type de donnée incorrect",
    "KeyError": "Clé requise introuvable",
    "FileNotFoundError": "Fichier introuvable",
    "PermissionError": "Permission refusée",
    "ConnectionError": "Échec de connexion",
    "TimeoutError": "Délai d'attente dépassé",
    "IntegrityError": "Conflit avec des données existantes",
    "OperationalError": "Erreur de base de données",
    "Exception": "Une erreur est survenue",
}
