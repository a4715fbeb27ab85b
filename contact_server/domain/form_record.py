"""Contact form record model and required-field validation."""

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from contact_server.domain.errors import StorageFormatError, ValidationError

FIELD_NAMES = ("first_name", "last_name", "email", "phone_number")
INVALID_INPUT_MESSAGE = "invalid input"


@dataclass(frozen=True)
class FormRecord:
    """A single contact submission."""

    first_name: str
    last_name: str
    email: str
    phone_number: str

    @classmethod
    def from_form(cls, fields: Mapping[str, str]) -> "FormRecord":
        """Build a record from parsed form fields, defaulting absent ones to empty."""
        return cls(**{name: fields.get(name, "") for name in FIELD_NAMES})

    @classmethod
    def from_dict(cls, payload: Any) -> "FormRecord":
        """Decode one stored JSON object into a record.

        Missing keys and null values decode as empty strings and unknown keys
        are ignored. A key holding any other non-string is a format error.
        """
        if not isinstance(payload, dict):
            raise StorageFormatError(
                f"cannot decode {type(payload).__name__} into a form record"
            )
        values = {}
        for name in FIELD_NAMES:
            value = payload.get(name)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise StorageFormatError(
                    f"field {name} must be a string, got {type(value).__name__}"
                )
            values[name] = value
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        """Return the record as an ordered JSON-ready mapping."""
        return asdict(self)


def validate(record: FormRecord) -> None:
    """Raise ValidationError when any required field is empty."""
    for name in FIELD_NAMES:
        if getattr(record, name) == "":
            raise ValidationError(INVALID_INPUT_MESSAGE)
