"""Custom exceptions for checktests."""


class CheckTestsError(Exception):
    """Base exception for all checktests errors."""

    pass


class DirectoryError(CheckTestsError):
    """Raised when a scan root is missing, not a directory, or unreadable."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class ParseError(CheckTestsError):
    """Raised when a single source file cannot be read or parsed."""

    def __init__(self, path: str, reason: str | None = None):
        self.path = path
        msg = f"Failed to parse file {path}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class MalformedResponseError(CheckTestsError):
    """Raised when the server's test listing cannot be interpreted."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed server response: {reason}")


class EmptyResultError(CheckTestsError):
    """Raised when the server's test listing contains no tests."""

    def __init__(self) -> None:
        super().__init__("No tests found in response")


class InvalidKeyError(CheckTestsError):
    """Raised when a mapping key is not of the form path#type#method."""

    def __init__(self, key: str, parts: int):
        self.key = key
        self.parts = parts
        super().__init__(
            f"Invalid key format - expected 3 parts separated by '#', "
            f"got {parts}: {key}"
        )


class MethodNotFoundError(CheckTestsError):
    """Raised when a mapping key does not resolve to any parsed method."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Method not found for key: {key}")


class WriteError(CheckTestsError):
    """Raised when a patched file cannot be persisted."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to modify file {path}: {reason}")


class TransportError(CheckTestsError):
    """Raised when the tracking server cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(CheckTestsError):
    """Raised when required settings (API key, server URL) are missing or invalid."""

    def __init__(self, message: str):
        super().__init__(message)
