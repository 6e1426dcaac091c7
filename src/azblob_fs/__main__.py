"""Allow running as python -m azblob_fs."""

from .cli import app

app()
