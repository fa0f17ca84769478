"""Exceptions raised by the command engine."""

from __future__ import annotations


class BotError(Exception):
    """Base class for AbsoluteBot errors."""


class UnsupportedCapability(BotError):
    """A chat service was asked to do something it does not advertise."""

    def __init__(self, platform: str, capability: str) -> None:
        super().__init__(f"{platform} does not support {capability}")
        self.platform = platform
        self.capability = capability


class ResponseAlreadySet(BotError):
    """A parsed command's response was assigned twice."""
