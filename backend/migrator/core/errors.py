"""Migration error classes.

Two error classes drive the control flow of a run:

- Row-level: a single record cannot be migrated. Either a SkipRecord
  (expected source-data entropy such as an orphaned reference, logged as a
  warning) or any other exception raised while writing the record (logged
  as an error). The phase continues with the next record.
- Fatal: a MigrationError subclass that aborts the current command with a
  non-zero exit and a diagnostic naming the failed precondition.
"""


class MigrationError(Exception):
    """Base class for fatal migration errors.

    Attributes:
        code: Machine-readable error code (e.g., "PHASE_FATAL").
        message: Human-readable error message.
    """

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class PhaseFatalError(MigrationError):
    """A phase could not begin (source unreachable or first page failed)."""

    def __init__(self, phase: str, message: str) -> None:
        self.phase = phase
        super().__init__(
            code="PHASE_FATAL",
            message=f"Phase '{phase}' could not start: {message}",
        )


class GateRefusedError(MigrationError):
    """A destructive operation was refused by the safety gate."""


class ConfirmationRequiredError(GateRefusedError):
    """The caller did not pass the explicit confirmation flag."""

    def __init__(self) -> None:
        super().__init__(
            code="CONFIRMATION_REQUIRED",
            message="Destructive cleanup requires the --confirm flag",
        )


class BackupMissingError(GateRefusedError):
    """No backup artifact exists at the conventional path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            code="BACKUP_MISSING",
            message=f"No backup found at {path}; run the backup command first",
        )


class BackupError(MigrationError):
    """Raised when a backup cannot be written or read."""

    def __init__(self, message: str) -> None:
        super().__init__(code="BACKUP_ERROR", message=message)


class CleanupError(MigrationError):
    """Raised when the gated cleanup fails at the database level."""

    def __init__(self, message: str) -> None:
        super().__init__(code="CLEANUP_ERROR", message=message)


class UnsupportedDialectError(MigrationError):
    """The destination database has no native upsert support."""

    def __init__(self, dialect: str) -> None:
        super().__init__(
            code="UNSUPPORTED_DIALECT",
            message=f"Idempotent writes are not supported on '{dialect}'",
        )


class SkipRecord(Exception):
    """A record is skipped on purpose (orphaned reference, unknown identity).

    Not a failure: the phase logs it as a warning and moves on.

    Attributes:
        reason: Why the record was skipped.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
