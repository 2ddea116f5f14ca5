from liquid_connector.security.redaction import (
    REDACTED,
    SENSITIVE_KEY_FRAGMENTS,
    is_sensitive_key,
    mask,
    redact_data,
    sanitize_mapping,
    sanitize_text,
)

__all__ = [
    "REDACTED",
    "SENSITIVE_KEY_FRAGMENTS",
    "is_sensitive_key",
    "mask",
    "redact_data",
    "sanitize_mapping",
    "sanitize_text",
]
