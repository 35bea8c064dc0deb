"""logtee - tee a byte stream into size-bounded, rotating log files."""

__version__ = "1.0.0"
