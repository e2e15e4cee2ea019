"""Errors reported to JSON-RPC callers."""

from __future__ import annotations

DEFAULT_ERROR_CODE = -32000
NOT_FOUND_ERROR_CODE = -32001
INVALID_REQUEST_ERROR_CODE = -32600


class RPCError(Exception):
    """An error carrying a JSON-RPC error code and a message."""

    def __init__(self, code: int, message: str, *args: object) -> None:
        self.code = code
        self.message = message % args if args else message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message