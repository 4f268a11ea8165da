"""
Constants configuration for query string building.

This module defines the whitelists, defaults and message templates used when
encoding nested mappings and sequences into HTTP query strings.
"""

# Delimiters allowed between pairs; anything else falls back to the first entry
# Example: {"a": 1, "b": 2} becomes "a=1&b=2" or "a=1;b=2"
ALLOWED_DELIMITERS = ("&", ";")
DEFAULT_DELIMITER = ALLOWED_DELIMITERS[0]

# Percent-encoding modes
# rfc3986: "New York" becomes "New%20York"
# rfc1738: "New York" becomes "New+York"
ENCODING_RFC3986 = "rfc3986"
ENCODING_RFC1738 = "rfc1738"
ALLOWED_ENCODINGS = (ENCODING_RFC3986, ENCODING_RFC1738)

# Boolean rendering: int -> 1/0, word -> true/false, string -> "true"/"false" as text
ALLOWED_BOOL_FORMATS = ("int", "word", "string")

# Null rendering: omit -> pair dropped, empty -> "key=", string -> "key=null"
ALLOWED_NULL_FORMATS = ("omit", "empty", "string")

# ISO 8601 with UTC offset, e.g. 2024-05-01T12:30:00+02:00
# "%:z" is expanded by the encoder, strftime only knows it from Python 3.12
DEFAULT_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S%:z"

DEFAULT_MAX_DEPTH = 50
DEFAULT_MAX_PAIRS = 10000

# Most fractional digits rendered for floats (1e-20 becomes "0")
FLOAT_PRECISION = 14

# Appended to the parent path for collapsed sequence indexes: tags[]=a
EMPTY_INDEX_SUFFIX = "[]"

MSG_INVALID_INPUT = "Invalid input. Expected a mapping or sequence at current level."
MSG_INVALID_TYPE = "Invalid type in query data at key '{key}'."
MSG_DEPTH_EXCEEDED = "Max depth of {limit} exceeded."
MSG_PAIRS_EXCEEDED = "Max pair count of {limit} exceeded."

"""
Default Rationale:

ALLOWED_DELIMITERS ("&", ";"):
- "&" is what every form decoder expects
- ";" is the alternative separator recommended by older HTML specs
- Any other value silently falls back to "&" so callers never get an error
  for a typo in configuration

DEFAULT_MAX_DEPTH / DEFAULT_MAX_PAIRS:
- Bound the work done for adversarial or accidentally huge inputs
- Exceeding either is reported as an error, never silently truncated

Sorting keys (on by default) makes the output reproducible for signatures
and cache keys. Any change to these defaults changes generated query strings
and should be tested thoroughly.
"""
