"""Group chat bot building blocks: moderation helpers, reminder timers and a picture pool."""

__version__ = "0.1.0"