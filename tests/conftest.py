"""
Pytest configuration and shared fixtures.
"""

import pytest
from fakes import SEED_FILE, KeywordEmbedder

from suvidha.adapters.outbound.store import SQLiteDocumentStore, load_seed_file
from suvidha.core.domain import KnowledgeCategory, KnowledgeEntry


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP API with in-process fakes)")
    config.addinivalue_line("markers", "slow: Slow tests (network, large data)")


@pytest.fixture
def empty_store(tmp_path):
    """A fresh SQLite store with no rows."""
    return SQLiteDocumentStore(tmp_path / "suvidha_test.db")


@pytest.fixture
def store(empty_store):
    """A SQLite store loaded with the demo seed document."""
    load_seed_file(empty_store, SEED_FILE)
    return empty_store


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def knowledge_store(store, embedder):
    """Seeded store with a handful of embedded knowledge entries."""
    entries = [
        (KnowledgeCategory.FAQ, "How to pay my electricity bill", "Pay the electricity bill from the Bills page.", "ELECTRICITY"),
        (KnowledgeCategory.FAQ, "New water connection", "Apply for a water connection under Applications.", "WATER"),
        (KnowledgeCategory.SCHEME, "Jal Jeevan Mission", "Scheme for rural water tap connections.", "WATER"),
        (KnowledgeCategory.TARIFF, "Domestic Electricity", "Electricity tariff 3.5 per kWh.", "ELECTRICITY"),
    ]
    for category, title, content, department in entries:
        store.add_knowledge_entry(
            KnowledgeEntry(
                entry_id="",
                category=category,
                title=title,
                content=content,
                department=department,
                embedding=embedder.embed(content),
            )
        )
    embedder.calls.clear()
    return store
