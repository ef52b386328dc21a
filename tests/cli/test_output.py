"""Tests for CLI output helpers."""

from docstore.cli._output import index_rows, print_error, print_fields, print_index_table

SCHEMA = {
    "local_indexes": [
        {
            "name": "ByScore",
            "partition_key": "Player",
            "sort_key": "Score",
            "projection": "ALL",
            "non_key_attributes": [],
        }
    ],
    "global_indexes": [
        {
            "name": "ByLevel",
            "partition_key": "Level",
            "sort_key": None,
            "projection": "INCLUDE",
            "non_key_attributes": ["Score", "Time"],
        }
    ],
}


def test_print_fields_aligns_values(capsys):
    print_fields({"Table": "games", "Partition key": "Player", "Sort key": None})
    assert capsys.readouterr().out.splitlines() == [
        "Table:         games",
        "Partition key: Player",
        "Sort key:      -",
    ]


def test_print_fields_renders_nested_values_as_json(capsys):
    print_fields({"plan": "Table", "request": {"Limit": 3}})
    out = capsys.readouterr().out
    assert 'request: {"Limit": 3}' in out


def test_index_rows_locals_first_with_placeholders():
    assert index_rows(SCHEMA) == [
        ["local", "ByScore", "Player", "Score", "ALL", "-"],
        ["global", "ByLevel", "Level", "-", "INCLUDE", "Score,Time"],
    ]


def test_print_index_table(capsys):
    print_index_table(index_rows(SCHEMA))
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split()[:2] == ["Scope", "Index"]
    assert set(lines[1]) == {"-", " "}
    assert lines[3].split() == ["global", "ByLevel", "Level", "-", "INCLUDE", "Score,Time"]


def test_print_error(capsys):
    print_error("something broke")
    assert "Error: something broke" in capsys.readouterr().err
