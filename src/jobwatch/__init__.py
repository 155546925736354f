"""Real-time status monitor for server-side batch jobs."""

__version__ = "0.1.0"
