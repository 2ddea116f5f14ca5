from __future__ import annotations

import json
import re
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import jwt

from liquid_connector.adapters.liquid.metadata import API_VERSION
from liquid_connector.domain.errors import AuthenticationError

_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")

AUTH_HEADER = "X-Quoine-Auth"
VERSION_HEADER = "X-Quoine-API-Version"


@dataclass
class MonotonicNonceGenerator:
    now_ms_fn: Callable[[], int] = field(default_factory=lambda: (lambda: int(time.time() * 1000)))
    _last_stamp_ms: int | None = None

    def next_stamp_ms(self) -> int:
        now_ms = int(self.now_ms_fn())
        if self._last_stamp_ms is not None:
            now_ms = max(now_ms, self._last_stamp_ms + 1)
        self._last_stamp_ms = now_ms
        return now_ms


@dataclass(frozen=True)
class SignedRequest:
    url: str
    method: str
    headers: dict[str, str]
    body: str | None = None


def extract_params(path: str) -> list[str]:
    return _PATH_PARAM_RE.findall(path)


def implode_params(path: str, params: Mapping[str, Any]) -> str:
    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in params:
            raise ValueError(f"Missing path parameter '{name}' for {path}")
        return str(params[name])

    return _PATH_PARAM_RE.sub(_replace, path)


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def urlencode_params(query: Mapping[str, Any]) -> str:
    return urlencode([(key, _query_value(value)) for key, value in query.items()])


def build_auth_token(
    *,
    path: str,
    api_key: str,
    api_secret: str,
    nonce_ms: int,
    include_nonce: bool = True,
) -> str:
    payload: dict[str, Any] = {
        "path": path,
        "token_id": api_key,
        "iat": nonce_ms // 1000,
    }
    if include_nonce:
        payload["nonce"] = nonce_ms
    return jwt.encode(payload, api_secret, algorithm="HS256")


def sign_request(
    path: str,
    *,
    base_url: str,
    api: str = "public",
    method: str = "GET",
    params: Mapping[str, Any] | None = None,
    api_key: str | None = None,
    api_secret: str | None = None,
    nonce: MonotonicNonceGenerator | None = None,
    api_version: str = API_VERSION,
) -> SignedRequest:
    """Build the URL, headers and body for one Liquid REST call.

    Private calls carry an HS256 token over the request path (including the
    query string for GET), the key id and the issue time. The ``nonce`` claim
    is left out whenever the request sends a ``client_order_id``.
    """

    params = dict(params or {})
    normalized_method = method.upper()
    url = "/" + implode_params(path, params)
    path_params = set(extract_params(path))
    query = {key: value for key, value in params.items() if key not in path_params}
    headers = {
        VERSION_HEADER: api_version,
        "Content-Type": "application/json",
    }
    body: str | None = None

    if api == "private":
        if not api_key or not api_secret:
            raise AuthenticationError(
                "liquid requires LIQUID_API_KEY and LIQUID_API_SECRET for private endpoints"
            )
        if normalized_method == "GET":
            if query:
                url += "?" + urlencode_params(query)
        elif query:
            body = json.dumps(query, separators=(",", ":"))
        generator = nonce or MonotonicNonceGenerator()
        headers[AUTH_HEADER] = build_auth_token(
            path=url,
            api_key=api_key,
            api_secret=api_secret,
            nonce_ms=generator.next_stamp_ms(),
            include_nonce="client_order_id" not in query,
        )
    elif query:
        url += "?" + urlencode_params(query)

    return SignedRequest(
        url=base_url.rstrip("/") + url,
        method=normalized_method,
        headers=headers,
        body=body,
    )
