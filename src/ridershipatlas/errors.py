from __future__ import annotations


class UnsupportedFormat(ValueError):
    """Raised when a file extension has no matching decoder."""

    def __init__(self, name: str, extension: str) -> None:
        super().__init__(f"Unsupported file type: {name!r} (extension={extension!r})")
        self.name = name
        self.extension = extension


class DecodeError(ValueError):
    """Raised when the underlying CSV/Excel/JSON parser rejects the input."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"Failed to decode {name!r}: {message}")
        self.name = name
        self.message = message


class EmptyDataset(ValueError):
    """Input parsed fine but holds no rows."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name!r} was loaded successfully but contains no rows.")
        self.name = name


class SchemaMismatch(ValueError):
    """Raised by strict pivots when rows do not share the first row's columns."""
