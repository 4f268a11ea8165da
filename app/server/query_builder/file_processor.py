import io
import json
import logging
import pandas as pd
from typing import Dict, Any, List
from .exceptions import QueryDataError
from .http_query import build_http_query, OptionsArg

logger = logging.getLogger(__name__)


def build_http_query_from_json(json_content: bytes, options: OptionsArg = None) -> Dict[str, Any]:
    """
    Build an HTTP query from JSON file content.

    A JSON object or array is encoded like any other mapping or sequence; a
    bare JSON scalar produces an InvalidInput error result.

    Raises:
        QueryDataError: If the content is not valid UTF-8 JSON
    """
    try:
        data = json.loads(json_content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise QueryDataError(f"Error converting JSON to query: {str(e)}") from e

    return build_http_query(data, options=options)


def build_http_queries_from_jsonl(jsonl_content: bytes, options: OptionsArg = None) -> List[Dict[str, Any]]:
    """
    Build one HTTP query per record of a JSONL (JSON Lines) file.

    Args:
        jsonl_content: The JSONL file content as bytes
        options: Encoder options applied to every record

    Returns:
        A list of result dictionaries, one per valid record, in file order

    Raises:
        QueryDataError: If the file is empty or contains no valid records

    Note:
        Malformed JSON lines are skipped with a warning, allowing the
        function to continue processing valid records.

    Example JSONL input:
        {"id": 1, "user": {"name": "Alice"}, "tags": ["python", "data"]}
        {"id": 2, "user": {"name": "Bob"}, "tags": ["javascript"]}

    Resulting queries:
        id=1&tags[]=python&tags[]=data&user[name]=Alice
        id=2&tags[]=javascript&user[name]=Bob
    """
    try:
        content_str = jsonl_content.decode('utf-8')
    except UnicodeDecodeError as e:
        raise QueryDataError(f"Error converting JSONL to query: {str(e)}") from e

    results = []
    for line_num, line in enumerate(content_str.strip().split('\n'), 1):
        line = line.strip()

        # Skip empty lines
        if not line:
            continue

        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Skipping malformed JSON on line %d: %s", line_num, e)
            continue

        results.append(build_http_query(obj, options=options))

    if not results:
        raise QueryDataError("Error converting JSONL to query: file is empty or contains no valid records")

    return results


def _clean_record(record: Dict[Any, Any]) -> Dict[str, Any]:
    # Missing cells (NaN, NaT, None) become None so null_format decides their fate
    return {
        str(column): (None if pd.api.types.is_scalar(value) and pd.isna(value) else value)
        for column, value in record.items()
    }


def build_http_queries_from_dataframe(df: pd.DataFrame, options: OptionsArg = None) -> List[Dict[str, Any]]:
    """
    Build one HTTP query per DataFrame row.

    Column names become the top-level keys. Cells may hold scalars or nested
    lists and dicts (as produced by pd.json_normalize or object columns).

    Example:
        >>> df = pd.DataFrame([{"name": "John", "age": 25}])
        >>> build_http_queries_from_dataframe(df)[0]['query']
        'age=25&name=John'
    """
    return [
        build_http_query(_clean_record(record), options=options)
        for record in df.to_dict(orient='records')
    ]


def build_http_queries_from_csv(csv_content: bytes, options: OptionsArg = None) -> List[Dict[str, Any]]:
    """
    Build one HTTP query per CSV row.

    Raises:
        QueryDataError: If pandas cannot read the CSV content
    """
    try:
        df = pd.read_csv(io.BytesIO(csv_content))
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise QueryDataError(f"Error converting CSV to query: {str(e)}") from e

    # Clean column names
    df.columns = [str(col).strip() for col in df.columns]

    return build_http_queries_from_dataframe(df, options)
