"""devstrap — bootstrap a developer machine and undo it later."""

__version__ = "0.1.0"
