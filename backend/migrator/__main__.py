"""Allow ``python -m migrator``."""

from migrator.cli import app

app()
