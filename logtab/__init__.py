"""Terminal viewer for line-oriented (JSON) log files."""

__version__ = "0.1.0"
