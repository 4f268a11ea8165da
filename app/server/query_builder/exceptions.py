"""
Exception hierarchy for query string building.

Every error kind the encoder can report is an ``EncodeError`` subclass.
``build_http_query`` converts them into a result dict with ``to_result()``;
``build_query_string`` lets them propagate.
"""
from typing import Dict, Any

from .constants import (
    MSG_INVALID_INPUT,
    MSG_INVALID_TYPE,
    MSG_DEPTH_EXCEEDED,
    MSG_PAIRS_EXCEEDED,
)


class EncodeError(Exception):
    """Base exception for all query encoding errors."""

    kind = "EncodeError"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_result(self) -> Dict[str, Any]:
        return {
            'error': True,
            'message': self.message,
            'query': None,
        }


class InvalidInputError(EncodeError):
    """A mapping or sequence was expected but something else was given."""

    kind = "InvalidInput"

    def __init__(self):
        super().__init__(MSG_INVALID_INPUT)


class InvalidTypeError(EncodeError):
    """A leaf value has a type that cannot be rendered as a query value."""

    kind = "InvalidType"

    def __init__(self, key: str):
        self.key = key
        super().__init__(MSG_INVALID_TYPE.format(key=key))


class DepthExceededError(EncodeError):
    """Nesting went deeper than ``max_depth``."""

    kind = "DepthExceeded"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(MSG_DEPTH_EXCEEDED.format(limit=limit))


class PairsExceededError(EncodeError):
    """More than ``max_pairs`` pairs would have been emitted."""

    kind = "PairsExceeded"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(MSG_PAIRS_EXCEEDED.format(limit=limit))


class QueryDataError(ValueError):
    """Raised when a JSON, JSONL or CSV payload cannot be read at all."""
