"""Project-wide custom exception types.

Data-quality problems in the rows themselves never raise; these types cover
configuration mistakes made by the caller and failures at the loading
boundary.
"""


class InvalidFieldMappingError(ValueError):
    """Raised when a field mapping lacks a session key or timestamp field."""


class UnknownViewError(KeyError):
    """Raised when a dashboard view name is not registered."""

    def __init__(self, view: str) -> None:  # noqa: D401 – simple constructor
        super().__init__(view)
        self.view = view

    def __str__(self) -> str:
        return f"Unknown dashboard view '{self.view}'."


class InvalidQueryError(ValueError):
    """Raised for an unknown sort key, sort direction or page number."""


class RowSourceError(RuntimeError):
    """Raised when rows cannot be loaded from their source."""

    def __init__(self, message: str) -> None:  # noqa: D401 – simple constructor
        super().__init__(message)
