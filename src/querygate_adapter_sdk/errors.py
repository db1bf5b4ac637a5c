class AdapterError(Exception):
    """Base class for failures raised by adapters."""

    def __init__(self, message: str, datasource_id: str = None):
        super().__init__(message)
        self.message = message
        self.datasource_id = datasource_id


class AdapterConnectionError(AdapterError):
    """A session with the backend could not be established."""


class AdapterQueryError(AdapterError):
    """The backend rejected or failed the statement it was given."""


class ValueDecodeError(ValueError):
    """A native value could not be converted by the requested decoder."""
