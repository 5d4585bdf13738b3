"""
Aethr — Error Types

Only conditions a caller must tell apart live here. "No fix found" is
not an error: it is a FixResponse with found=False.
"""


class AethrError(Exception):
    """Base class for all Aethr errors."""


class StorageUnavailableError(AethrError):
    """
    The process cannot obtain a handle to its own storage at all
    (directory not creatable, file not openable, schema not appliable).
    This is the one fatal condition; it is surfaced distinctly from
    an empty result.
    """

    def __init__(self, db_path: str, reason: str):
        self.db_path = db_path
        self.reason = reason
        super().__init__(f"Cannot open database at {db_path}: {reason}")


class LLMTransportError(AethrError):
    """Remote model unreachable, timed out, rejected auth, or returned non-2xx."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class RuleFileError(AethrError):
    """The rules file exists but cannot be read or is not valid YAML."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Invalid rules file {path}: {reason}")
