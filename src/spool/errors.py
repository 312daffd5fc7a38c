"""Exceptions raised by the spool engine."""


class SpoolError(Exception):
    """Base class for all spool failures."""


class WorkspaceNotFound(SpoolError):
    """Raised when no .spool directory exists at or above the start path."""


class WorkspaceExists(SpoolError):
    """Raised by init when a .spool directory is already present."""


class ParseError(SpoolError):
    """Raised when a log line is not valid JSON or not a valid event."""

    def __init__(self, file: str, line_number: int, cause: str):
        self.file = file
        self.line_number = line_number
        self.cause = cause
        super().__init__(f"Failed to parse line {line_number} in {file}: {cause}")


class TaskNotFound(SpoolError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class ValidationFailed(SpoolError):
    """Raised by strict validation when any error or warning was found."""

    def __init__(self, result, error_count: int = 0, warning_count: int = 0):
        self.result = result
        self.error_count = error_count
        self.warning_count = warning_count
        if error_count:
            msg = f"Validation failed with {error_count} errors"
        else:
            msg = f"Validation failed with {warning_count} warnings (--strict mode)"
        super().__init__(msg)
