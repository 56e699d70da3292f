"""
Test configuration and fixtures
"""

import logging
import sqlite3

import pytest

from pets_provider.app.core.config import Settings
from pets_provider.app.core.contract import Gender
from pets_provider.app.core.logging_config import PACKAGE_LOGGER
from pets_provider.app.services.pet_provider import PetProvider


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a fresh database file for each test"""
    return Settings(database_url=str(tmp_path / "pets.db"), db_timeout=10.0)


@pytest.fixture
def provider(settings):
    """Provider on the per-test database, closed after the test"""
    p = PetProvider(settings)
    try:
        yield p
    finally:
        p.close()


@pytest.fixture
def contract(provider):
    return provider.contract


@pytest.fixture
def tommy():
    return {"name": "Tommy", "breed": "Pitbull", "gender": Gender.MALE, "weight": 45}


@pytest.fixture
def rex():
    return {"name": "Rex", "breed": "Boxer", "gender": Gender.MALE, "weight": 30}


@pytest.fixture
def row_count(settings):
    """Count pets by reading the database file directly"""

    def count() -> int:
        conn = sqlite3.connect(settings.database_url)
        try:
            return conn.execute("SELECT COUNT(*) FROM pets").fetchone()[0]
        finally:
            conn.close()

    return count


class Recorder:
    """Observer callback collecting the locators it was called with"""

    def __init__(self):
        self.calls = []

    def __call__(self, locator):
        self.calls.append(locator)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers setup_logging attached so each test starts unconfigured"""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
