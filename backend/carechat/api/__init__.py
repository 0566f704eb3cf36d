"""API routers."""

from carechat.api import chat

__all__ = [
    "chat",
]
