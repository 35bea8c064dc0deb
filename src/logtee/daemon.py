"""Detach from the terminal and run in the background."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from logtee.errors import ConfigError

logger = logging.getLogger(__name__)

DAEMON_DIR = Path("/tmp")


@dataclass(frozen=True)
class DaemonPaths:
    stdout: Path
    stderr: Path
    pid: Path


def daemon_paths(ident: str, base_dir: Path = DAEMON_DIR) -> DaemonPaths:
    """Side files for a daemon named ``ident``."""
    return DaemonPaths(
        stdout=base_dir / f"logtee-daemon-{ident}-out.log",
        stderr=base_dir / f"logtee-daemon-{ident}-err.log",
        pid=base_dir / f"logtee-daemon-{ident}.pid",
    )


def daemonize(ident: str | None, base_dir: Path = DAEMON_DIR) -> DaemonPaths:
    """Double-fork so the process is detached from its controlling terminal.

    Only the grandchild returns. stdout and stderr are redirected to the
    side files and the pid file holds the daemon's pid. Standard input is
    left as is so piped data can still be captured.
    """
    if not ident:
        raise ConfigError("--ident is required with --daemon")
    if not hasattr(os, "fork"):
        raise ConfigError("--daemon is not supported on this platform")

    paths = daemon_paths(ident, base_dir)
    _fork_and_exit_parent()
    os.setsid()
    _fork_and_exit_parent()

    sys.stdout.flush()
    sys.stderr.flush()
    with open(paths.stdout, "ab") as out, open(paths.stderr, "ab") as err:
        os.dup2(out.fileno(), sys.stdout.fileno())
        os.dup2(err.fileno(), sys.stderr.fileno())

    paths.pid.write_text(f"{os.getpid()}\n", encoding="utf-8")
    logger.info("Running as daemon %s (pid %d)", ident, os.getpid())
    return paths


def _fork_and_exit_parent() -> None:
    if os.fork() > 0:
        os._exit(0)
