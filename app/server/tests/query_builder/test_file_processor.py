import pytest
import logging
import pandas as pd
from pathlib import Path
from query_builder.file_processor import (
    build_http_query_from_json,
    build_http_queries_from_jsonl,
    build_http_queries_from_dataframe,
    build_http_queries_from_csv,
)
from query_builder.exceptions import QueryDataError
from query_builder.constants import MSG_INVALID_INPUT


@pytest.fixture
def test_assets_dir():
    """Get the path to test assets directory"""
    return Path(__file__).parent.parent / "assets"


class TestBuildHttpQueryFromJson:

    def test_products_file(self, test_assets_dir):
        # Load real JSON file
        json_file = test_assets_dir / "test_products.json"
        with open(json_file, 'rb') as f:
            json_data = f.read()

        result = build_http_query_from_json(json_data)

        assert result['error'] is False
        query = result['query']
        assert query.startswith("0[category]=Electronics&0[id]=1&0[in_stock]=1&0[name]=Laptop&0[price]=999.99")
        assert "0[tags][]=portable&0[tags][]=work" in query
        assert "1[dimensions][height]=110&1[dimensions][width]=60" in query
        assert "1[name]=Desk%20Chair" in query
        assert query.endswith("2[name]=Coffee%20Mug&2[price]=12")
        # Null discount is omitted by default
        assert "discount" not in query

    def test_products_file_with_options(self, test_assets_dir):
        json_file = test_assets_dir / "test_products.json"
        with open(json_file, 'rb') as f:
            json_data = f.read()

        result = build_http_query_from_json(
            json_data,
            options={'null_format': 'empty', 'bool_format': 'word', 'preserve_numeric_indexes': True},
        )
        assert "0[tags][0]=portable&0[tags][1]=work" in result['query']
        assert "1[in_stock]=false" in result['query']
        assert "2[discount]=&" in result['query']

    def test_invalid_json(self):
        with pytest.raises(QueryDataError) as exc_info:
            build_http_query_from_json(b'invalid json')

        assert "Error converting JSON to query" in str(exc_info.value)

    def test_escaped_lone_surrogate(self):
        result = build_http_query_from_json(b'{"a": "\\ud800"}')
        assert result == {'error': False, 'message': None, 'query': "a=%ED%A0%80"}

    def test_json_scalar(self):
        result = build_http_query_from_json(b'"just a string"')
        assert result == {'error': True, 'message': MSG_INVALID_INPUT, 'query': None}


class TestBuildHttpQueriesFromJsonl:

    def test_events_file(self, test_assets_dir):
        jsonl_file = test_assets_dir / "test_events.jsonl"
        with open(jsonl_file, 'rb') as f:
            jsonl_data = f.read()

        results = build_http_queries_from_jsonl(jsonl_data)

        # Blank line is skipped
        assert [r['query'] for r in results] == [
            "event=login&tags[]=web&tags[]=mobile&user[id]=1&user[name]=Alice",
            "amount=19.99&event=purchase&tags[]=web&user[id]=2&user[name]=Bob",
            "event=logout&user[id]=1&user[name]=Alice",
        ]

    def test_malformed_lines_are_skipped(self, caplog):
        jsonl_data = b'''{"id": 1, "name": "Alice"}
this is not valid json
{"id": 2, "name": "Bob"}'''

        with caplog.at_level(logging.WARNING, logger='query_builder.file_processor'):
            results = build_http_queries_from_jsonl(jsonl_data)

        assert [r['query'] for r in results] == ["id=1&name=Alice", "id=2&name=Bob"]
        assert "Skipping malformed JSON on line 2" in caplog.text

    def test_per_record_errors(self):
        jsonl_data = b'''{"id": 1}
42
{"id": {"deep": {"deeper": 1}}}'''

        results = build_http_queries_from_jsonl(jsonl_data, options={'max_depth': 2})

        assert results[0]['query'] == "id=1"
        assert results[1]['message'] == MSG_INVALID_INPUT
        assert results[2]['message'] == "Max depth of 2 exceeded."

    def test_empty_jsonl(self):
        with pytest.raises(QueryDataError) as exc_info:
            build_http_queries_from_jsonl(b'')

        assert "empty" in str(exc_info.value).lower()

    def test_invalid_jsonl(self):
        with pytest.raises(QueryDataError) as exc_info:
            build_http_queries_from_jsonl(b'this is not json at all')

        assert "Error converting JSONL to query" in str(exc_info.value)


class TestBuildHttpQueriesFromDataframe:

    def test_missing_values_follow_null_format(self):
        df = pd.DataFrame([
            {"name": "John", "score": 1.5},
            {"name": "Jane", "score": None},
        ])

        results = build_http_queries_from_dataframe(df)
        assert [r['query'] for r in results] == ["name=John&score=1.5", "name=Jane"]

        results = build_http_queries_from_dataframe(df, options={'null_format': 'empty'})
        assert results[1]['query'] == "name=Jane&score="

    def test_timestamps(self):
        df = pd.DataFrame({"when": pd.to_datetime(["2024-01-02 03:04:05", None])})

        results = build_http_queries_from_dataframe(df, options={'datetime_format': '%Y-%m-%d %H:%M'})
        assert results[0]['query'] == "when=2024-01-02%2003%3A04"
        assert results[1]['query'] == ""

    def test_nested_cells(self):
        df = pd.DataFrame({"id": [1], "tags": [["a", "b"]]})

        results = build_http_queries_from_dataframe(df)
        assert results[0]['query'] == "id=1&tags[]=a&tags[]=b"

    def test_empty_dataframe(self):
        assert build_http_queries_from_dataframe(pd.DataFrame()) == []


class TestBuildHttpQueriesFromCsv:

    def test_users_file(self, test_assets_dir):
        # Load real CSV file
        csv_file = test_assets_dir / "test_users.csv"
        with open(csv_file, 'rb') as f:
            csv_data = f.read()

        results = build_http_queries_from_csv(csv_data)

        assert len(results) == 4
        assert all(r['error'] is False for r in results)
        assert results[0]['query'] == "age=25&city=New%20York&email=john%40example.com&name=John%20Doe"
        # Bob has no email
        assert results[2]['query'] == "age=35&city=Chicago&name=Bob%20Johnson"

    def test_users_file_rfc1738(self, test_assets_dir):
        csv_file = test_assets_dir / "test_users.csv"
        with open(csv_file, 'rb') as f:
            csv_data = f.read()

        results = build_http_queries_from_csv(csv_data, options={'encoding': 'rfc1738', 'delimiter': ';'})
        assert results[1]['query'] == "age=30;city=Los+Angeles;email=jane%40example.com;name=Jane+Smith"

    def test_inconsistent_csv(self, test_assets_dir):
        csv_file = test_assets_dir / "invalid.csv"
        with open(csv_file, 'rb') as f:
            csv_data = f.read()

        with pytest.raises(QueryDataError) as exc_info:
            build_http_queries_from_csv(csv_data)

        assert "Error converting CSV to query" in str(exc_info.value)

    def test_empty_csv(self):
        with pytest.raises(QueryDataError):
            build_http_queries_from_csv(b'')
