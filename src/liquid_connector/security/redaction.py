from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

REDACTED = "***REDACTED***"

# Matched as substrings of the normalized key (lowercase, "-" -> "_").
SENSITIVE_KEY_FRAGMENTS = (
    "api_key",
    "api_secret",
    "secret",
    "token",
    "password",
    "authorization",
    "quoine_auth",
    "auth_code",
)
_SENSITIVE_KEYS_EXACT = frozenset({"apikey", "auth", "signature"})

# Header and env var names whose value follows ":" or "=" in free text.
_CREDENTIAL_LABELS = ("authorization", "x-quoine-auth", "liquid_api_key", "liquid_api_secret")
_LABELLED_CREDENTIAL = re.compile(
    r"(?i)\b(" + "|".join(re.escape(label) for label in _CREDENTIAL_LABELS) + r")"
    r"(\s*[:=]\s*)(bearer\s+)?([^\s,;]+)"
)
_SIGNED_TOKEN = re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")
_JSON_CREDENTIAL = re.compile(
    r'("(?:token_id|api_key|apiKey|api_secret|secret|password|authorization)"\s*:\s*")([^"\\]*)(")',
    re.IGNORECASE,
)


def is_sensitive_key(key: object) -> bool:
    normalized = str(key).replace("-", "_").lower()
    if normalized in _SENSITIVE_KEYS_EXACT:
        return True
    return any(fragment in normalized for fragment in SENSITIVE_KEY_FRAGMENTS)


def mask(value: str) -> str:
    """Keep a short prefix/suffix of long values so operators can tell keys apart."""

    size = len(value)
    if size == 0:
        return REDACTED
    if size <= 2:
        return "*" * size
    if size <= 8:
        return "*" * (size - 2) + value[-2:]
    return value[:4] + "*" * (size - 8) + value[-4:]


def sanitize_text(text: str, known_secrets: Iterable[str] = ()) -> str:
    result = str(text)
    for secret in filter(None, known_secrets):
        result = result.replace(secret, mask(str(secret)))

    result = _LABELLED_CREDENTIAL.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{m.group(3) or ''}[REDACTED]", result
    )
    result = _SIGNED_TOKEN.sub("[REDACTED_TOKEN]", result)
    return _JSON_CREDENTIAL.sub(lambda m: m.group(1) + mask(m.group(2)) + m.group(3), result)


def sanitize_mapping(data: Mapping[str, Any]) -> dict[str, Any]:
    sanitized: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key)
        if not is_sensitive_key(name):
            sanitized[name] = redact_data(value)
        elif value is None:
            sanitized[name] = REDACTED
        else:
            sanitized[name] = mask(str(value))
    return sanitized


def redact_data(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, Mapping):
        return sanitize_mapping(value)
    if isinstance(value, (list, tuple)):
        return type(value)(redact_data(item) for item in value)
    return value
