"""
Shared fixtures for the signvault test suite.
"""

import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pytest

from signvault.storage.backends import FilesystemStorageBackend, InMemoryStorageBackend
from signvault.vault import SignedJsonVault

SECRET = "mySecret"


@dataclass
class RandomData:
    """Typed test object mirroring the vault's reference scenario."""

    random_string: str
    random_number: int
    random_date: date


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        if path.exists():
            shutil.rmtree(path)


@pytest.fixture
def filesystem_storage(temp_dir):
    return FilesystemStorageBackend(temp_dir)


@pytest.fixture
def memory_storage():
    return InMemoryStorageBackend()


@pytest.fixture
def random_data():
    return RandomData(
        random_string="abc123XYZ9", random_number=42, random_date=date(2020, 1, 1)
    )


@pytest.fixture
def local_vault(filesystem_storage):
    """Signed JSON vault on a temp directory, loading RandomData."""
    return SignedJsonVault(filesystem_storage, SECRET, target_type=RandomData)


@pytest.fixture
def aws_credentials():
    """Mocked AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
