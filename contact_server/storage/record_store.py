"""JSON file persistence for submitted contact forms.

Every call re-reads the whole document; ``append`` rewrites it in full.
There is no locking: two concurrent ``append`` calls may both read the same
prior list and the later write wins, dropping the earlier submission.
"""

import json
import logging
from pathlib import Path
from typing import Protocol, Union

from contact_server.domain.correlation_id import get_logger
from contact_server.domain.errors import (
    StorageFormatError,
    StorageReadError,
    StorageWriteError,
)
from contact_server.domain.form_record import FormRecord

STORE_LOGGER = get_logger("storage")


class RecordStore(Protocol):
    """Storage collaborator used by the form handler."""

    def load(self) -> list[FormRecord]: ...

    def append(self, record: FormRecord) -> None: ...


def encode_records(records: list[FormRecord]) -> str:
    """Serialize records as a compact JSON array."""
    return json.dumps(
        [record.to_dict() for record in records],
        separators=(",", ":"),
        ensure_ascii=False,
    )


def decode_records(document: str) -> list[FormRecord]:
    """Parse a JSON array document into records."""
    try:
        payload = json.loads(document)
    except json.JSONDecodeError as error:
        raise StorageFormatError(f"invalid JSON document: {error}") from error
    if not isinstance(payload, list):
        raise StorageFormatError(
            f"cannot decode {type(payload).__name__} into a list of form records"
        )
    return [FormRecord.from_dict(item) for item in payload]


class JsonFileRecordStore:
    """Keeps the full record collection in one JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> list[FormRecord]:
        """Read and decode the whole collection."""
        try:
            document = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            STORE_LOGGER.error(
                "Data file read failed",
                extra={
                    "event": "storage_read_failed",
                    "path": self.path.as_posix(),
                    "error_type": type(error).__name__,
                },
            )
            raise StorageReadError(str(error)) from error
        records = decode_records(document)
        if STORE_LOGGER.logger.isEnabledFor(logging.DEBUG):
            STORE_LOGGER.debug(
                "Data file loaded",
                extra={
                    "event": "storage_loaded",
                    "path": self.path.as_posix(),
                    "records": len(records),
                },
            )
        return records

    def append(self, record: FormRecord) -> None:
        """Load the collection, add ``record`` and overwrite the file."""
        records = self.load()
        records.append(record)
        document = encode_records(records)
        try:
            self.path.write_text(document, encoding="utf-8")
        except OSError as error:
            STORE_LOGGER.error(
                "Data file write failed",
                extra={
                    "event": "storage_write_failed",
                    "path": self.path.as_posix(),
                    "error_type": type(error).__name__,
                },
            )
            raise StorageWriteError(str(error)) from error
        STORE_LOGGER.info(
            "Record appended",
            extra={
                "event": "storage_appended",
                "path": self.path.as_posix(),
                "records": len(records),
                "bytes_out": len(document),
            },
        )
