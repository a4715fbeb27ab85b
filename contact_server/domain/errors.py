"""Error taxonomy shared by the request path and the startup path."""


class ContactServerError(Exception):
    """Base class for all errors raised by the contact form server."""


class ValidationError(ContactServerError):
    """Raised when a submitted record is missing a required field."""


class FormParseError(ValidationError):
    """Raised when the submitted form payload cannot be decoded."""


class StorageError(ContactServerError):
    """Base class for record store failures."""


class StorageReadError(StorageError):
    """Raised when the data file cannot be read."""


class StorageFormatError(StorageError):
    """Raised when the data file does not hold a list of records."""


class StorageWriteError(StorageError):
    """Raised when the data file cannot be overwritten."""


class StartupConfigError(ContactServerError):
    """Raised when required configuration or assets are unavailable at startup."""


class BindError(ContactServerError):
    """Raised when the listener cannot acquire its address."""


class ShutdownTimeoutError(ContactServerError):
    """Raised when in-flight requests outlive the shutdown grace period."""
