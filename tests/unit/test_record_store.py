"""Unit tests for the JSON file record store."""

import json
import logging
from pathlib import Path

import pytest

from contact_server.domain.errors import (
    StorageFormatError,
    StorageReadError,
    StorageWriteError,
)
from contact_server.domain.form_record import FormRecord
from contact_server.storage.record_store import (
    JsonFileRecordStore,
    decode_records,
    encode_records,
)

ADA = FormRecord("Ada", "Lovelace", "ada@example.com", "123")
GRACE = FormRecord("Grace", "Hopper", "grace@navy.mil", "456")


@pytest.fixture(name="data_file")
def fixture_data_file(tmp_path: Path) -> Path:
    """Provide an empty data document."""
    path = tmp_path / "forms.json"
    path.write_text("[]")
    return path


def test_load_empty_document(data_file: Path):
    """An empty array decodes to no records."""
    assert JsonFileRecordStore(data_file).load() == []


def test_load_missing_file_raises_read_error(tmp_path: Path):
    """The store never creates the document on its own."""
    missing = tmp_path / "absent.json"
    with pytest.raises(StorageReadError):
        JsonFileRecordStore(missing).load()
    assert not missing.exists()


def test_load_invalid_json_raises_format_error(data_file: Path):
    """Syntactically broken content is a format error and stays untouched."""
    data_file.write_text("[{")
    with pytest.raises(StorageFormatError):
        JsonFileRecordStore(data_file).load()
    assert data_file.read_text() == "[{"


@pytest.mark.parametrize("document", ["null", "{}", '"text"', "42"])
def test_load_non_list_document_raises_format_error(data_file: Path, document: str):
    """Only a JSON array is a valid collection."""
    data_file.write_text(document)
    with pytest.raises(StorageFormatError):
        JsonFileRecordStore(data_file).load()


def test_append_grows_collection_by_one(data_file: Path):
    """Each append adds exactly one record at the end."""
    store = JsonFileRecordStore(data_file)
    store.append(ADA)
    store.append(GRACE)
    assert store.load() == [ADA, GRACE]


def test_append_writes_compact_ordered_json(data_file: Path):
    """The document matches the wire layout byte for byte."""
    JsonFileRecordStore(data_file).append(ADA)
    assert data_file.read_text() == (
        '[{"first_name":"Ada","last_name":"Lovelace",'
        '"email":"ada@example.com","phone_number":"123"}]'
    )


def test_append_overwrites_instead_of_appending_bytes(data_file: Path):
    """A shorter rewrite leaves no trailing bytes from the previous content."""
    data_file.write_text(
        json.dumps([ADA.to_dict()], indent=4) + "\n" + " " * 200
    )
    store = JsonFileRecordStore(data_file)
    store.append(GRACE)
    assert json.loads(data_file.read_text()) == [ADA.to_dict(), GRACE.to_dict()]
    assert not data_file.read_text().endswith(" ")


def test_append_does_not_touch_invalid_document(data_file: Path):
    """A format error on load aborts the append before any write."""
    data_file.write_text("not json")
    with pytest.raises(StorageFormatError):
        JsonFileRecordStore(data_file).append(ADA)
    assert data_file.read_text() == "not json"


def test_append_write_failure_raises_write_error(
    data_file: Path, monkeypatch: pytest.MonkeyPatch, caplog
):
    """An OSError during write-back surfaces as StorageWriteError."""

    def refuse_write(self, *_args, **_kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "write_text", refuse_write)
    with caplog.at_level(logging.ERROR, logger="contact_server.storage"):
        with pytest.raises(StorageWriteError, match="Permission denied"):
            JsonFileRecordStore(data_file).append(ADA)
    assert any(
        getattr(record, "event", None) == "storage_write_failed"
        for record in caplog.records
    )


def test_each_call_rereads_the_document(data_file: Path):
    """No state is cached between calls; outside edits are visible."""
    store = JsonFileRecordStore(data_file)
    store.append(ADA)
    data_file.write_text(encode_records([GRACE]))
    assert store.load() == [GRACE]


def test_encode_decode_round_trip_preserves_order():
    """Serializing then deserializing yields the same collection."""
    records = [ADA, GRACE, FormRecord("a", "b", "c", "d")]
    assert decode_records(encode_records(records)) == records


def test_append_writes_non_ascii_as_utf8(data_file: Path):
    """Accented names are stored as UTF-8 text, not \\u escapes."""
    JsonFileRecordStore(data_file).append(
        FormRecord("José", "Núñez", "j@example.com", "1")
    )
    document = data_file.read_text(encoding="utf-8")
    assert '"first_name":"José"' in document
    assert "\\u" not in document


def test_load_tolerates_null_fields(data_file: Path):
    """Records holding null values still list."""
    data_file.write_text(
        '[{"first_name":"Ada","last_name":null,"email":"e","phone_number":"1"}]'
    )
    assert JsonFileRecordStore(data_file).load() == [
        FormRecord("Ada", "", "e", "1")
    ]
