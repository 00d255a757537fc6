"""Remote to-do service clients."""

from mstodo_sync.client.base import TodoClient
from mstodo_sync.client.graph import GraphTodoClient
from mstodo_sync.client.memory import MemoryTodoClient

__all__ = ["GraphTodoClient", "MemoryTodoClient", "TodoClient"]
