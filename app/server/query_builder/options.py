"""
Encoder configuration.

``EncodeOptions`` is an immutable record of every knob the encoder reads.
Build it from a plain mapping with ``EncodeOptions.from_mapping``: each
recognized key is checked against its whitelist on its own and replaced by
the default when the value is not acceptable. Unknown keys are ignored.
Configuration problems are never reported as errors.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Any, Mapping, Optional

from .constants import (
    ALLOWED_DELIMITERS,
    ALLOWED_ENCODINGS,
    ALLOWED_BOOL_FORMATS,
    ALLOWED_NULL_FORMATS,
    DEFAULT_DELIMITER,
    DEFAULT_DATETIME_FORMAT,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAIRS,
    ENCODING_RFC3986,
)

logger = logging.getLogger(__name__)

# Older callers pass the encoding mode as "encode"
OPTION_ALIASES = {'encode': 'encoding'}


@dataclass(frozen=True)
class EncodeOptions:
    """
    Immutable encoder configuration.

    Attributes:
        encoding: "rfc3986" (space as %20) or "rfc1738" (space as +)
        bool_format: "int", "word" or "string"
        null_format: "omit", "empty" or "string"
        datetime_format: strftime format applied to date/time values, "%:z"
            renders the offset as +02:00
        max_depth: deepest nesting level allowed, root is level 1
        max_pairs: most pairs that may be emitted
        sort_keys: order mapping keys by their string form
        preserve_numeric_indexes: emit key[0] instead of key[] for sequences
        delimiter: "&" or ";"
    """

    encoding: str = ENCODING_RFC3986
    bool_format: str = 'int'
    null_format: str = 'omit'
    datetime_format: str = DEFAULT_DATETIME_FORMAT
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pairs: int = DEFAULT_MAX_PAIRS
    sort_keys: bool = True
    preserve_numeric_indexes: bool = False
    delimiter: str = DEFAULT_DELIMITER


    def __post_init__(self):
        # Direct construction goes through the same fallback rules as from_mapping
        checked = {
            'encoding': _choice('encoding', self.encoding, ALLOWED_ENCODINGS),
            'bool_format': _choice('bool_format', self.bool_format, ALLOWED_BOOL_FORMATS),
            'null_format': _choice('null_format', self.null_format, ALLOWED_NULL_FORMATS),
            'datetime_format': _datetime_format(self.datetime_format),
            'max_depth': _positive_int('max_depth', self.max_depth),
            'max_pairs': _positive_int('max_pairs', self.max_pairs),
            'sort_keys': _flag('sort_keys', self.sort_keys),
            'preserve_numeric_indexes': _flag('preserve_numeric_indexes', self.preserve_numeric_indexes),
            'delimiter': _choice('delimiter', self.delimiter, ALLOWED_DELIMITERS),
        }
        for name, value in checked.items():
            object.__setattr__(self, name, value)

    @classmethod
    def from_mapping(
        cls,
        options: Optional[Mapping[str, Any]] = None,
        delimiter: Any = DEFAULT_DELIMITER,
        preserve_numeric_indexes: Any = False,
    ) -> 'EncodeOptions':
        """
        Build options from a loosely typed mapping.

        ``delimiter`` and ``preserve_numeric_indexes`` are the values given
        through the legacy positional parameters; the same keys inside
        ``options`` take precedence over them.
        """
        raw: Dict[str, Any] = {
            'delimiter': delimiter,
            'preserve_numeric_indexes': preserve_numeric_indexes,
        }
        for key, value in (options or {}).items():
            name = OPTION_ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                logger.debug("Ignoring unknown encode option %r", key)
                continue
            raw[name] = value

        return cls(**raw)


def _default(name: str) -> Any:
    return EncodeOptions.__dataclass_fields__[name].default


def _fallback(name: str, value: Any) -> Any:
    default = _default(name)
    logger.debug("Invalid value %r for encode option %r, using %r", value, name, default)
    return default


def _choice(name: str, value: Any, allowed) -> str:
    if isinstance(value, str) and value in allowed:
        return value
    return _fallback(name, value)


def _datetime_format(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return _fallback('datetime_format', value)


def _positive_int(name: str, value: Any) -> int:
    """Coerce like int(); anything below 1 is raised to 1."""
    if isinstance(value, bool) or value is None:
        return _fallback(name, value)
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return _fallback(name, value)
    return max(1, number)


def _flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _fallback(name, value)
