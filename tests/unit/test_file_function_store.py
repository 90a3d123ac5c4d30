"""Tests for the JSON file function store."""

import json

import pytest

from sheetpoet.schemas.function_definition import FunctionDefinition
from sheetpoet.storage.filesystem import FileFunctionStore

from tests.conftest import make_function


@pytest.fixture
def store(tmp_path):
    return FileFunctionStore(tmp_path / "data" / "functions.json")


def test_missing_file_loads_empty(store):
    assert store.load() == []


def test_round_trip_preserves_identity(store):
    definition = make_function("clean_row")
    store.save_all([definition])

    loaded = store.load()
    assert loaded == [definition]
    assert loaded[0].id == definition.id


def test_save_replaces_atomically(store):
    store.save_all([make_function("first_fn")])
    store.save_all([make_function("second_fn")])

    assert [d.name for d in store.load()] == ["second_fn"]
    assert not store.path.with_suffix(".json.tmp").exists()


def test_corrupt_file_raises(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(IOError, match="Failed to read function store"):
        store.load()


def test_malformed_entries_are_skipped(store):
    good = make_function("clean_row")
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps([{"label": "no name or code"}, good.model_dump(mode="json")]), encoding="utf-8"
    )

    assert [d.name for d in store.load()] == ["clean_row"]


def test_legacy_entry_without_id_gets_one(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps([{"name": "clean_row", "code": "def clean_row(record):\n    return record"}]),
        encoding="utf-8",
    )

    loaded = store.load()
    assert isinstance(loaded[0], FunctionDefinition)
    assert loaded[0].id
    assert loaded[0].type == "upload_to_website"
