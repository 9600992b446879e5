"""
Test fixtures package.

Provides factory functions and in-memory repository implementations.
"""

from .domain_fixtures import BASE_TIME, FakeClock, create_shared_file
from .mock_repositories import MockFileRepository, MockStorageRepository

__all__ = [
    "BASE_TIME",
    "FakeClock",
    "create_shared_file",
    "MockFileRepository",
    "MockStorageRepository",
]
