"""CommitWatch: GitHub commit notifications by email."""

__version__ = "1.0.0"
