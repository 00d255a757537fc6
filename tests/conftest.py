"""
Root conftest.py for mstodo-sync tests.

This file provides:
1. Common pytest markers for test categorization
2. Shared fixtures: settings, identity table, in-memory client, clock

Fixtures are organized by category:
- Environment fixtures (token, settings path)
- Settings / identity fixtures
- Client fixtures
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone

import pytest

from mstodo_sync.client.memory import MemoryTodoClient
from mstodo_sync.engine import SyncEngine
from mstodo_sync.identity import IdentityTable
from mstodo_sync.models import RemoteTask
from mstodo_sync.settings import SyncSettings

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        norm = str(item.fspath).replace("\\", "/")
        if norm.endswith("test_graph_client.py"):
            item.add_marker(pytest.mark.graph)
        if norm.endswith("test_cli.py"):
            item.add_marker(pytest.mark.cli)


def pytest_configure(config):
    """Register custom markers."""
    for name, desc in [
        ("graph", "Microsoft Graph client tests (mocked transport)"),
        ("cli", "Command line tests"),
        ("slow", "Slow-running tests"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() calls made by CLI tests."""
    yield
    root = logging.getLogger("mstodo_sync")
    root.setLevel(logging.NOTSET)
    for handler in list(root.handlers):
        root.removeHandler(handler)


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================


@pytest.fixture
def mock_env_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MSTODO_ACCESS_TOKEN", "test-access-token")


@pytest.fixture
def mock_env_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MSTODO_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("MSTODO_SYNC_SETTINGS", raising=False)
    monkeypatch.delenv("MSTODO_GRAPH_URL", raising=False)


# =============================================================================
# SETTINGS / IDENTITY FIXTURES
# =============================================================================

LIST_ID = "inbox-list"

# 2026-10-19 09:30 at UTC+2
FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone(timedelta(hours=2)))


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(
        task_id_lookup={"a100001": "R1"},
        task_id_index=1,
        todo_list_sync={"listName": "Inbox", "listId": LIST_ID},
    )


@pytest.fixture
def commits() -> list[dict]:
    """Snapshots handed to the identity table's commit hook."""
    return []


@pytest.fixture
def table(settings: SyncSettings, commits: list[dict]) -> IdentityTable:
    return settings.identity_table(
        on_commit=lambda t: commits.append(t.to_dict()),
        rng=random.Random(7),
    )


# =============================================================================
# CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def client() -> MemoryTodoClient:
    """In-memory service with the Inbox list and the task bound to ^a100001."""
    c = MemoryTodoClient()
    c.add_list(LIST_ID, "Inbox")
    c.add_task(LIST_ID, RemoteTask(id="R1", title="Call Bob (old)"))
    return c


@pytest.fixture
def engine(client: MemoryTodoClient, table: IdentityTable, settings: SyncSettings) -> SyncEngine:
    return SyncEngine(client, table, settings)
