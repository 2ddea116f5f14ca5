from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType

CONTEXT_FIELDS = frozenset({"request_id", "symbol", "order_id", "client_order_id"})

_EMPTY: Mapping[str, str] = MappingProxyType({})
_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("liquid_logging_context", default=_EMPTY)


def get_logging_context() -> dict[str, str]:
    return dict(_CONTEXT.get())


@contextmanager
def with_logging_context(**context: str | None) -> Iterator[None]:
    """Bind correlation fields for log records emitted inside the block.

    Unknown field names and ``None`` values are ignored; inner blocks override
    outer values and the outer binding is restored on exit.
    """

    bound = {
        key: str(value)
        for key, value in context.items()
        if key in CONTEXT_FIELDS and value is not None
    }
    token = _CONTEXT.set(MappingProxyType({**_CONTEXT.get(), **bound}))
    try:
        yield
    finally:
        _CONTEXT.reset(token)
