"""
Build HTTP query strings from nested mappings and sequences.

The encoder walks the input depth-first, building bracket key paths
(``user[name]``, ``tags[]``, ``tags[0]``) and normalizing every leaf to a
string before percent-encoding it. Depth and pair-count guards bound the
work done for huge or adversarial inputs.

Examples:
    >>> build_http_query({"user": {"name": "John"}})
    {'error': False, 'message': None, 'query': 'user[name]=John'}

    >>> build_http_query({"tags": ["php", "curl"]})['query']
    'tags[]=php&tags[]=curl'

    >>> build_http_query({"q": "New York"}, options={"encoding": "rfc1738"})['query']
    'q=New+York'
"""
import datetime
import logging
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Dict, Any, Iterator, List, Optional, Tuple, Union
from urllib.parse import quote, quote_plus

import numpy as np
import pandas as pd

from .constants import ENCODING_RFC1738, EMPTY_INDEX_SUFFIX, FLOAT_PRECISION
from .exceptions import (
    EncodeError,
    InvalidInputError,
    InvalidTypeError,
    DepthExceededError,
    PairsExceededError,
)
from .options import EncodeOptions

logger = logging.getLogger(__name__)

SEQUENCE_TYPES = (list, tuple)

OptionsArg = Union[EncodeOptions, Mapping, None]


class ScalarKind(Enum):
    """Kinds of leaf values the encoder knows how to render."""

    NULL = 'null'
    BOOLEAN = 'boolean'
    DATETIME = 'datetime'
    INTEGER = 'integer'
    FLOAT = 'float'
    STRING = 'string'
    UNSUPPORTED = 'unsupported'


def is_container(value: Any) -> bool:
    return isinstance(value, Mapping) or isinstance(value, SEQUENCE_TYPES)


def classify_scalar(value: Any) -> ScalarKind:
    """
    Map a leaf value to its ScalarKind.

    Order matters: bool is a subclass of int, and pandas.NaT pretends to be
    a datetime.
    """
    if value is None or value is pd.NaT or value is pd.NA:
        return ScalarKind.NULL
    if isinstance(value, (bool, np.bool_)):
        return ScalarKind.BOOLEAN
    if isinstance(value, (datetime.date, datetime.time)):
        return ScalarKind.DATETIME
    if isinstance(value, (int, np.integer)):
        return ScalarKind.INTEGER
    if isinstance(value, (float, np.floating, Decimal)):
        return ScalarKind.FLOAT
    if isinstance(value, str):
        return ScalarKind.STRING
    return ScalarKind.UNSUPPORTED


def format_float(value: Union[float, Decimal]) -> str:
    """
    Render a number in fixed notation without trailing zeros.

    Examples:
        >>> format_float(1.0)
        '1'
        >>> format_float(1e20)
        '100000000000000000000'
        >>> format_float(0.1)
        '0.1'
    """
    if isinstance(value, Decimal):
        text = format(value, 'f')
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
    else:
        # Shortest unique digits, rounded to FLOAT_PRECISION fractional places
        text = np.format_float_positional(value, precision=FLOAT_PRECISION, unique=True, trim='-')
    if text == '-0':
        return '0'
    return text or '0'


def format_datetime(value: Any, fmt: str) -> str:
    """
    strftime with support for "%:z" (UTC offset as +02:00).

    Dates and naive datetimes have no offset, "%:z" then renders as "".
    """
    if '%:z' in fmt:
        offset = ''
        if isinstance(value, (datetime.datetime, datetime.time)):
            offset = value.strftime('%z')
        if offset:
            offset = offset[:3] + ':' + offset[3:5] + (':' + offset[5:] if len(offset) > 5 else '')
        fmt = fmt.replace('%:z', offset)
    return value.strftime(fmt)


def normalize_scalar(value: Any, options: EncodeOptions) -> Tuple[ScalarKind, Optional[str]]:
    """
    Normalize a leaf to the text that goes after "=".

    Returns the kind together with the text. The text is None when the pair
    must be omitted (null values with null_format "omit") and for
    unsupported values; callers tell those apart by kind.
    """
    kind = classify_scalar(value)

    if kind is ScalarKind.BOOLEAN:
        if options.bool_format == 'int':
            return kind, '1' if value else '0'
        return kind, 'true' if value else 'false'

    if kind is ScalarKind.NULL:
        if options.null_format == 'empty':
            return kind, ''
        if options.null_format == 'string':
            return kind, 'null'
        return kind, None

    if kind is ScalarKind.DATETIME:
        return kind, format_datetime(value, options.datetime_format)

    if kind is ScalarKind.INTEGER:
        return kind, str(int(value))

    if kind is ScalarKind.FLOAT:
        return kind, format_float(value)

    if kind is ScalarKind.STRING:
        return kind, value

    return kind, None


def percent_encode(text: str, encoding: str) -> str:
    """
    Percent-encode text for use as a query key or value.

    rfc3986 leaves only A-Z a-z 0-9 - _ . ~ as they are, space becomes %20.
    rfc1738 is the form-encoding flavour: space becomes + and ~ is escaped.
    Lone surrogates are passed through as their raw UTF-8 bytes.
    """
    if encoding == ENCODING_RFC1738:
        return quote_plus(text, safe='', errors='surrogatepass').replace('~', '%7E')
    return quote(text, safe='', errors='surrogatepass')


class _PairAccumulator:
    """Collects encoded pairs for one encoding call and enforces max_pairs."""

    def __init__(self, max_pairs: int):
        self.max_pairs = max_pairs
        self.pairs: List[str] = []
        self.count = 0

    def add(self, encoded_key: str, encoded_value: str) -> None:
        self.count += 1
        if self.count > self.max_pairs:
            raise PairsExceededError(self.max_pairs)
        self.pairs.append(f"{encoded_key}={encoded_value}")

    def join(self, delimiter: str) -> str:
        return delimiter.join(self.pairs)


def _entries(node: Any, options: EncodeOptions) -> List[Tuple[Any, Any, bool]]:
    """Return (key, value, is_sequence_index) triples in emission order."""
    if isinstance(node, Mapping):
        items = list(node.items())
        if options.sort_keys:
            items.sort(key=lambda item: str(item[0]))
        return [(key, value, False) for key, value in items]
    # Sequences keep their positional order even when sort_keys is on
    return [(index, value, True) for index, value in enumerate(node)]


def _child_key(parent: Optional[str], key: Any, is_index: bool, options: EncodeOptions) -> str:
    if parent is None:
        return percent_encode(str(key), options.encoding)
    if is_index and not options.preserve_numeric_indexes:
        return parent + EMPTY_INDEX_SUFFIX
    return f"{parent}[{percent_encode(str(key), options.encoding)}]"


def _open_level(node: Any, parent: Optional[str], depth: int,
                options: EncodeOptions) -> Tuple[Iterator[Tuple[Any, Any, bool]], Optional[str], int]:
    if depth > options.max_depth:
        raise DepthExceededError(options.max_depth)

    if not is_container(node):
        raise InvalidInputError()

    return iter(_entries(node, options)), parent, depth


def _build(root: Any, parent: Optional[str], options: EncodeOptions, acc: _PairAccumulator) -> None:
    """
    Walk root depth-first and add every emitted pair to acc.

    Levels are kept on an explicit stack, so nesting is bounded by max_depth
    only and never by the interpreter's recursion limit.
    """
    stack = [_open_level(root, parent, 1, options)]

    while stack:
        entries, parent, depth = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            continue

        key, value, is_index = entry
        encoded_key = _child_key(parent, key, is_index, options)

        if is_container(value):
            stack.append(_open_level(value, encoded_key, depth + 1, options))
            continue

        kind, text = normalize_scalar(value, options)
        if kind is ScalarKind.UNSUPPORTED:
            raise InvalidTypeError(str(key))
        if text is None:
            continue

        acc.add(encoded_key, percent_encode(text, options.encoding))


def _resolve_options(options: OptionsArg, delimiter: Any = '&',
                     preserve_numeric_indexes: Any = False) -> EncodeOptions:
    if isinstance(options, EncodeOptions):
        return options
    return EncodeOptions.from_mapping(
        options,
        delimiter=delimiter,
        preserve_numeric_indexes=preserve_numeric_indexes,
    )


def build_query_string(query_data: Any, options: OptionsArg = None, parent_key: str = '') -> str:
    """
    Encode nested data into a query string, raising on failure.

    Args:
        query_data: A mapping or a list/tuple, nested arbitrarily
        options: An EncodeOptions instance or a mapping of option values
        parent_key: Path prefix used verbatim for the top-level keys

    Returns:
        The query string, pairs joined by the configured delimiter

    Raises:
        InvalidInputError: query_data is not a mapping or sequence
        InvalidTypeError: a leaf value cannot be rendered
        DepthExceededError: nesting is deeper than max_depth
        PairsExceededError: more than max_pairs pairs would be emitted
    """
    opts = _resolve_options(options)
    acc = _PairAccumulator(opts.max_pairs)
    _build(query_data, parent_key or None, opts, acc)
    return acc.join(opts.delimiter)


def build_http_query(
    query_data: Any,
    parent_key: str = '',
    delimiter: str = '&',
    preserve_numeric_indexes: bool = False,
    options: OptionsArg = None,
) -> Dict[str, Any]:
    """
    Build an HTTP query string from (optionally nested) data.

    The positional parameters are kept for older call sites; the same
    settings inside ``options`` take precedence. An EncodeOptions instance
    carries every setting, so with one the positional delimiter and
    preserve_numeric_indexes are not consulted. Invalid option values fall
    back to their defaults instead of failing.

    Args:
        query_data: A mapping or a list/tuple, nested arbitrarily
        parent_key: Path prefix used verbatim for the top-level keys
        delimiter: "&" or ";", anything else becomes "&"
        preserve_numeric_indexes: Emit key[0] instead of key[] for sequences
        options: An EncodeOptions instance or a mapping with any of
            encoding, bool_format, null_format, datetime_format, max_depth,
            max_pairs, sort_keys, preserve_numeric_indexes, delimiter

    Returns:
        A dictionary containing:
        - error: True when encoding failed
        - message: The error message, or None on success
        - query: The query string, or None on failure

    Example:
        >>> result = build_http_query({"name": "John", "age": 30})
        >>> result['query'] if not result['error'] else result['message']
        'age=30&name=John'
    """
    opts = _resolve_options(options, delimiter, preserve_numeric_indexes)
    acc = _PairAccumulator(opts.max_pairs)
    try:
        _build(query_data, parent_key or None, opts, acc)
    except EncodeError as e:
        logger.debug("Query encoding failed (%s): %s", e.kind, e.message)
        return e.to_result()

    return {
        'error': False,
        'message': None,
        'query': acc.join(opts.delimiter),
    }
