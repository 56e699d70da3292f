"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so that
the provider works out of the box against a ``pets.db`` file in the
project root.  Tests and embedding applications can construct their
own ``Settings`` instance instead of relying on the environment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Provider settings loaded from environment variables."""

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Path to the SQLite database file.  A relative path is resolved
    # relative to the project root by the ``db`` module.  The special
    # value ``:memory:`` keeps everything in a shared in‑memory database
    # that lives as long as the store engine is open.
    database_url: str = os.getenv("PETS_DATABASE_URL", "pets.db")

    # Seconds a connection waits for the SQLite write lock before
    # failing.  This is SQLite's native contention policy; no retries
    # are layered on top.
    db_timeout: float = float(os.getenv("PETS_DB_TIMEOUT", "5.0"))

    # Locator parts: content://<content_authority>/<path_pets>[/<id>]
    content_authority: str = os.getenv("PETS_CONTENT_AUTHORITY", "com.example.android.pets")
    path_pets: str = os.getenv("PETS_PATH", "pets")

    # Observer callbacks run on this many background threads.  Keep it
    # at 1 to deliver notifications in the order the writes happened.
    notifier_workers: int = int(os.getenv("PETS_NOTIFIER_WORKERS", "1"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
