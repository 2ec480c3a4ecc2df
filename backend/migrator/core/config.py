"""Migration configuration loaded from environment variables.

Settings for the legacy (source) and destination databases, the phase
runner, the identity provider lookup, and the cleanup/backup commands.
Uses pydantic-settings for validation and .env file support.
"""

import re
from datetime import UTC, date, datetime, time
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default passwords that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_SOURCE_PASSWORD = "legacy_dev_password"  # nosec B105
_INSECURE_DESTINATION_PASSWORD = "platform_dev_password"  # nosec B105

# schema.table or table; interpolated into identity lookups, so it must stay
# a plain identifier.
_TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

BACKUP_FILE_NAME = "migrated-data-backup.json"
BACKUP_METADATA_FILE_NAME = "backup-metadata.json"


class Settings(BaseSettings):
    """Migration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source (legacy) database
    source_database_host: str = "localhost"
    source_database_port: int = 5432
    source_database_name: str = "legacy_platform"
    source_database_user: str = "legacy_user"
    source_database_password: str = _INSECURE_SOURCE_PASSWORD
    # Full URL override (e.g. a managed provider connection string)
    source_database_dsn: str = ""

    # Destination database
    destination_database_host: str = "localhost"
    destination_database_port: int = 5432
    destination_database_name: str = "platform"
    destination_database_user: str = "platform_user"
    destination_database_password: str = _INSECURE_DESTINATION_PASSWORD
    destination_database_dsn: str = ""

    # Identity provider: table holding the canonical person identities
    identity_users_table: str = "auth.users"

    # Phase runner
    migration_batch_size: int = Field(default=50, ge=1, le=1000)
    error_summary_limit: int = Field(default=10, ge=0, le=1000)

    # Cleanup / backup
    migration_date: date = Field(default_factory=lambda: datetime.now(UTC).date())
    backup_dir: Path = Path("data-backup")
    cleanup_preserve_emails: list[str] = []

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    @field_validator("identity_users_table")
    @classmethod
    def check_identity_table(cls, value: str) -> str:
        """Reject identity table names that are not plain identifiers."""
        if not _TABLE_NAME_PATTERN.match(value):
            msg = (
                "IDENTITY_USERS_TABLE must be a table name or schema.table, "
                f"got: {value!r}"
            )
            raise ValueError(msg)
        return value

    @property
    def source_database_url(self) -> str:
        """Async database URL for the legacy store."""
        if self.source_database_dsn:
            return self.source_database_dsn
        return (
            f"postgresql+asyncpg://{self.source_database_user}:"
            f"{self.source_database_password}@{self.source_database_host}:"
            f"{self.source_database_port}/{self.source_database_name}"
        )

    @property
    def destination_database_url(self) -> str:
        """Async database URL for the destination store."""
        if self.destination_database_dsn:
            return self.destination_database_dsn
        return (
            f"postgresql+asyncpg://{self.destination_database_user}:"
            f"{self.destination_database_password}@{self.destination_database_host}:"
            f"{self.destination_database_port}/{self.destination_database_name}"
        )

    def backup_path(self, migration_date: date | None = None) -> Path:
        """Conventional location of the backup artifact for a migration date.

        Args:
            migration_date: Date of the migration. Defaults to settings.

        Returns:
            Path to ``<backup_dir>/<YYYY-MM-DD>/migrated-data-backup.json``.
        """
        day = migration_date or self.migration_date
        return self.backup_dir / day.isoformat() / BACKUP_FILE_NAME

    def cleanup_cutoff(self, migration_date: date | None = None) -> datetime:
        """Timestamp at or before which rows count as migrated data."""
        day = migration_date or self.migration_date
        return datetime.combine(day, time.min, tzinfo=UTC)

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Security: Prevents running against production databases with known
        insecure default credentials.
        """
        if self.environment == "production":
            if (
                not self.source_database_dsn
                and self.source_database_password == _INSECURE_SOURCE_PASSWORD
            ):
                msg = (
                    "Cannot use default source database password in production. "
                    "Set SOURCE_DATABASE_PASSWORD environment variable."
                )
                raise ValueError(msg)
            if (
                not self.destination_database_dsn
                and self.destination_database_password
                == _INSECURE_DESTINATION_PASSWORD
            ):
                msg = (
                    "Cannot use default destination database password in production. "
                    "Set DESTINATION_DATABASE_PASSWORD environment variable."
                )
                raise ValueError(msg)

        return self


settings = Settings()
