"""Error taxonomy shared by the write path and the storage adapters.

Write-path validation fails loudly with `ErrorKind.VALIDATION`; storage
failures surface as `ErrorKind.DATABASE` / `ErrorKind.NOT_FOUND` and are
propagated untouched by the aggregation layer. Read-path aggregation never
raises for a malformed row.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    UNKNOWN = "Unknown"
    NETWORK = "Network"
    NOT_FOUND = "NotFound"
    VALIDATION = "Validation"
    DATABASE = "Database"
    AUTH = "Auth"


class AppError(Exception):
    """Application error tagged with an `ErrorKind`.

    Attributes:
        kind: Category used by callers to pick a response (400, 404, 500...).
        original: Underlying exception, if this wraps one.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        original: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.original = original

    def __repr__(self) -> str:
        return f"AppError({self.message!r}, kind={self.kind.value})"


NETWORK_MARKERS = ("failed to fetch", "networkerror", "network error", "connection refused", "timed out")


def is_network_error(error: Any) -> bool:
    """Return True when the error text looks like a transport failure."""
    if not error:
        return False
    text = error if isinstance(error, str) else str(getattr(error, "message", "") or error)
    text = text.lower()
    return any(marker in text for marker in NETWORK_MARKERS)


def format_error(error: Any) -> str:
    """Render any error into a short user-facing (pt-BR) message."""
    if not error:
        return "Erro desconhecido"
    if isinstance(error, str):
        return error
    if isinstance(error, AppError):
        return error.message
    if isinstance(error, Exception):
        if is_network_error(error):
            return "Erro de rede. Verifique sua conexão."
        return str(error) or "Erro inesperado"
    if isinstance(error, dict):
        message = str(error.get("message") or error.get("error") or "")
        if message and is_network_error(message):
            return "Erro de rede. Verifique sua conexão."
        parts = [message] if message else []
        if error.get("code"):
            parts.append(f"code: {error['code']}")
        if error.get("status"):
            parts.append(f"status: {error['status']}")
        if parts:
            return " - ".join(parts)
    return str(error)
