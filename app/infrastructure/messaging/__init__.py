"""Messaging: in-process progress signal channel."""

from app.infrastructure.messaging.progress_channel import InProcessProgressChannel

__all__ = ["InProcessProgressChannel"]
