"""AbsoluteBot - multi-platform chat bot with a shared command engine."""
__version__ = "0.1.0"
