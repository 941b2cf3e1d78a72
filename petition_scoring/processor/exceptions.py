class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class SubmissionValidationError(ProcessorError):
    """Raised for malformed session ids, missing fields or missing content. Never retried."""


class SessionNotFoundError(ProcessorError):
    """Raised when a scoring session cannot be found in the database."""


class RunSupersededError(ProcessorError):
    """Raised when a newer submission has replaced the run that tried to write."""


class PersistenceError(ProcessorError):
    """Raised when a status transition or result write fails."""


class UnsupportedStorageDiskError(ProcessorError):
    """Raised when a file uses an unsupported storage disk type."""


class FileReadError(ProcessorError):
    """Raised when a file cannot be read from storage."""
