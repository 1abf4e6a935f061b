"""histsync - shell history synchronization server."""

__version__ = "0.1.0"
