import os

from dotenv import find_dotenv, load_dotenv

if not os.environ.get("MSTODO_SYNC_ENV_LOADED"):
    load_dotenv(find_dotenv(usecwd=True))
    os.environ["MSTODO_SYNC_ENV_LOADED"] = "1"

from mstodo_sync.anchors import embed_anchor, extract_anchor, strip_anchor
from mstodo_sync.client import GraphTodoClient, MemoryTodoClient, TodoClient
from mstodo_sync.commands import SyncReport, post_batch, post_single, render_today_list
from mstodo_sync.engine import SyncEngine, SyncOutcome
from mstodo_sync.errors import (
    ConfigurationError,
    EmptyTitleError,
    IdentityIntegrityError,
    IndeterminateTaskIdError,
    NoSelectionError,
    NoTargetListError,
    PreconditionError,
    RemoteTaskError,
    TodoSyncError,
)
from mstodo_sync.extractor import LineExtractor, TaskLineRecord
from mstodo_sync.identity import IdentityTable
from mstodo_sync.logging import configure_logging, get_logger
from mstodo_sync.models import RemoteTask, RemoteTaskList
from mstodo_sync.renderer import render_outcomes, render_task_lists
from mstodo_sync.settings import SettingsStore, SyncSettings
from mstodo_sync.surface import BufferSurface, FileSurface, TextSurface

__version__ = "0.3.0"

__all__ = [
    # Core
    "IdentityTable",
    "LineExtractor",
    "SyncEngine",
    "SyncOutcome",
    "SyncReport",
    "TaskLineRecord",
    # Anchors
    "embed_anchor",
    "extract_anchor",
    "strip_anchor",
    # Commands
    "post_batch",
    "post_single",
    "render_today_list",
    # Rendering
    "render_outcomes",
    "render_task_lists",
    # Clients and models
    "GraphTodoClient",
    "MemoryTodoClient",
    "RemoteTask",
    "RemoteTaskList",
    "TodoClient",
    # Surfaces
    "BufferSurface",
    "FileSurface",
    "TextSurface",
    # Settings
    "SettingsStore",
    "SyncSettings",
    # Errors
    "ConfigurationError",
    "EmptyTitleError",
    "IdentityIntegrityError",
    "IndeterminateTaskIdError",
    "NoSelectionError",
    "NoTargetListError",
    "PreconditionError",
    "RemoteTaskError",
    "TodoSyncError",
    # Logging
    "configure_logging",
    "get_logger",
]
