"""Allow running as `python -m logtee`."""

from logtee.cli import app

app(prog_name="logtee")
