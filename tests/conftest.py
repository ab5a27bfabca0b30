"""
Shared pytest fixtures for the record integrity tests.

Every test runs against a fresh in-process document store, so tests never need
a running MongoDB.
"""

import logging

import pytest
import pytest_asyncio

from services.record_integrity.RecordService import RecordService
from shared.clients.store.memory.DocumentStoreMemory import DocumentStoreMemory
from shared.helper.HelperConfig import HelperConfig
from shared.models.rules import IntegrityRules


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("record_integrity.tests"))


@pytest.fixture
def idle_store(helper_config) -> DocumentStoreMemory:
    """A store that is never booted, for components that do not touch it."""
    return DocumentStoreMemory(helper_config=helper_config)


@pytest_asyncio.fixture
async def store(helper_config):
    store = DocumentStoreMemory(helper_config=helper_config)
    await store.boot()
    yield store
    await store.close()


@pytest.fixture
def rules() -> IntegrityRules:
    return IntegrityRules(
        types={
            "Books": {"title": "string", "price": "decimal", "pages": "integer"},
            "Loans": {"Books_id": "array"},
        },
        values={
            "Books": {"genre": ["Fiction", "Poetry", "History"]},
        },
    )


@pytest.fixture
def service(helper_config, store, rules) -> RecordService:
    return RecordService(helper_config=helper_config, store=store, rules=rules)
