"""AbsoluteBot transports."""

from absolutebot.transports.base import Transport

__all__ = ["Transport"]
