"""
Defines custom exceptions for the application to allow for more specific error handling.

Every error raised by the build is fatal: it aborts the whole run and is
reported once by the command-line layer.
"""


class ModbuildError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(operation)

    def __str__(self) -> str:
        if self.cause is None:
            return self.operation
        return f"{self.operation}: {self.cause}"


class FileSystemError(ModbuildError):
    """Raised when walking, cleaning or creating a directory fails."""


class DownloadError(ModbuildError):
    """Raised when an artifact cannot be fetched or stored."""


class ToolFailedError(ModbuildError):
    """Raised when a compiler or test runner exits with a nonzero status."""

    def __init__(self, tool: str, code: int):
        self.tool = tool
        self.code = code
        super().__init__(f"{tool} failed with error code {code}")


class ProcessSpawnError(ModbuildError):
    """Raised when an external tool process cannot be started or awaited."""


class ConfigurationError(ModbuildError):
    """Raised for issues related to configuration loading or validation."""
