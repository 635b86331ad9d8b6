"""
Logging utilities for safe logging of contact data and storage activity.

Includes:
- PII/secret redaction for record payloads before they reach the logs
- Structured storage event logging for uploads and deletions
"""
import json
import logging
import re
from typing import Any, Optional


# Sensitive keys that should be redacted in logs
SENSITIVE_KEYS = [
    "api_key", "token", "password", "secret", "auth",
    "email", "phone", "address",
    "access_token", "refresh_token",
    "bearer", "authorization"
]


def sanitize_for_logging(data: Any, max_len: int = 100) -> Any:
    """
    Sanitize data for safe logging - redacts PII and secrets.

    Args:
        data: The data to sanitize (can be dict, list, str, or other types)
        max_len: Maximum length for string values before truncation

    Returns:
        Sanitized version of the data safe for logging
    """
    if data is None:
        return "None"

    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            if any(sensitive in k.lower() for sensitive in SENSITIVE_KEYS):
                sanitized[k] = "***REDACTED***"
            else:
                sanitized[k] = sanitize_for_logging(v, max_len)
        return sanitized

    if isinstance(data, list):
        return [sanitize_for_logging(item, max_len) for item in data]

    if isinstance(data, str):
        # Single-line logging
        cleaned = re.sub(r'[\x00-\x1F\x7F]', '', data)
        if len(cleaned) > max_len:
            return cleaned[:max_len] + "..."
        return cleaned

    return sanitize_for_logging(str(data), max_len)


def redact_emails(text: str) -> str:
    """Replace email addresses in text with [EMAIL_REDACTED]."""
    email_pattern = r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'
    return re.sub(email_pattern, '[EMAIL_REDACTED]', text)


def redact_phone_numbers(text: str) -> str:
    """Replace phone numbers (French and international formats) with [PHONE_REDACTED]."""
    phone_patterns = [
        r'\+\d{1,3}[-.\s]?\(?\d{1,4}\)?(?:[-.\s]?\d{2,4}){2,4}',  # International
        r'\b0\d(?:[-.\s]?\d{2}){4}\b',  # 06 12 34 56 78
    ]

    result = text
    for pattern in phone_patterns:
        result = re.sub(pattern, '[PHONE_REDACTED]', result)

    return result


def sanitize_log_message(message: str) -> str:
    """Redact PII and control characters from a free-form log message."""
    message = redact_emails(message)
    message = redact_phone_numbers(message)
    message = re.sub(r'[\x00-\x1F\x7F]', '', message)
    return message


# =============================================================================
# STRUCTURED STORAGE LOGGING
# =============================================================================

_storage_logger = logging.getLogger("RenoDesk.Storage.Events")


def log_storage_event(
    action: str,
    path: str,
    bucket: str,
    size_bytes: Optional[int] = None,
    duration_ms: Optional[int] = None,
    owner_id: Optional[str] = None,
    outcome: str = "ok",
) -> None:
    """
    Log a structured event for a blob storage operation.

    Produces a single JSON line that log aggregation can parse to track
    upload volume and orphaned objects.

    Args:
        action: 'upload' or 'delete'
        path: Object path inside the bucket
        bucket: Bucket name
        size_bytes: Object size for uploads
        duration_ms: Wall time of the operation
        owner_id: Quote the object belongs to, when known
        outcome: 'ok' or 'error'
    """
    event = {
        "event": "storage",
        "action": action,
        "bucket": bucket,
        "path": path,
        "outcome": outcome,
    }

    if size_bytes is not None:
        event["size_bytes"] = size_bytes

    if duration_ms is not None:
        event["duration_ms"] = duration_ms

    if owner_id:
        event["owner_id"] = owner_id

    _storage_logger.info("STORAGE %s", json.dumps(event))
