"""Tests for the table, JSON and CSV result formatters."""

import json

import pytest

from sql_workbench.core.models import QueryResult
from sql_workbench.formatters.base import Formatter, FormatterRegistry, registry
from sql_workbench.formatters.csv import CSVFormatter
from sql_workbench.formatters.json import JSONFormatter
from sql_workbench.formatters.table import TableFormatter


def _make_result(data=None, columns=None, rows_affected=None):
    return QueryResult(
        columns=["id", "name"] if columns is None else columns,
        data=[[1, "alice"], [2, "bob"]] if data is None else data,
        rows_affected=rows_affected,
        execution_time=0.05,
    )


# -- Registry --


@pytest.mark.unit
def test_registry_has_builtin_formatters():
    assert registry.available == ["csv", "json", "table"]


@pytest.mark.unit
def test_registry_unknown_format():
    with pytest.raises(KeyError, match="Unknown format 'xml'"):
        FormatterRegistry().get("xml")


@pytest.mark.unit
@pytest.mark.parametrize("cls", [CSVFormatter, JSONFormatter, TableFormatter])
def test_formatters_implement_protocol(cls):
    assert isinstance(cls(), Formatter)


# -- JSON --


@pytest.mark.unit
def test_json_rows_as_dicts():
    parsed = json.loads("\n".join(JSONFormatter().format(_make_result())))
    assert parsed == [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]


@pytest.mark.unit
def test_json_compact_is_single_line():
    lines = list(JSONFormatter(compact=True).format(_make_result()))
    assert len(lines) == 1
    assert "\n" not in lines[0]


@pytest.mark.unit
def test_json_empty_result():
    assert json.loads("".join(JSONFormatter().format(_make_result(data=[])))) == []


# -- CSV --


@pytest.mark.unit
def test_csv_header_and_rows():
    lines = list(CSVFormatter().format(_make_result()))
    assert lines == ["id,name", "1,alice", "2,bob"]


@pytest.mark.unit
def test_csv_no_header():
    lines = list(CSVFormatter(no_header=True).format(_make_result()))
    assert lines == ["1,alice", "2,bob"]


@pytest.mark.unit
def test_csv_quotes_and_nulls():
    result = _make_result(data=[[1, 'say "hi", ok'], [2, None]])
    lines = list(CSVFormatter(no_header=True).format(result))
    assert lines == ['1,"say ""hi"", ok"', "2,"]


# -- Table --


@pytest.mark.unit
def test_table_contains_values():
    output = "\n".join(TableFormatter().format(_make_result()))
    assert "alice" in output
    assert "name" in output


@pytest.mark.unit
def test_table_truncates_wide_values():
    result = _make_result(data=[[1, "x" * 100]])
    output = "\n".join(TableFormatter(width=10).format(result))
    assert "x" * 9 + "…" in output
    assert "x" * 11 not in output


@pytest.mark.unit
def test_table_no_results():
    assert list(TableFormatter().format(_make_result(data=[]))) == ["No results"]


@pytest.mark.unit
def test_table_rows_affected():
    result = _make_result(columns=[], data=[], rows_affected=3)
    assert list(TableFormatter().format(result)) == ["3 row(s) affected"]


@pytest.mark.unit
def test_json_rows_affected_only():
    result = _make_result(columns=[], data=[], rows_affected=4)
    assert json.loads("".join(JSONFormatter().format(result))) == {"rows_affected": 4}


@pytest.mark.unit
def test_csv_nested_cells_are_json():
    result = _make_result(columns=["id", "tags"], data=[[1, ["a", "b"]]])
    assert list(CSVFormatter().format(result)) == ['id,tags', '1,"[""a"", ""b""]"']
