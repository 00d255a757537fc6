from .identity_cmds import register as register_identity
from .sync_cmds import register as register_sync

__all__ = [
    "register_identity",
    "register_sync",
]
