"""Identifiers for workflow rows, executions, and runner claims."""

import os
import socket

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """CUID2 primary key for workflows, versions, executions, and dead-letter entries."""
    return str(_next_cuid())


def generate_worker_id(prefix: str = "runner") -> str:
    """Claim owner written to claimed_by: host, pid, and a short random suffix.

    Two pools on the same host (or a restarted process reusing a pid) still
    get distinct owners, so a late completion from a reclaimed run can never
    match the new claim.
    """
    return f"{prefix}:{socket.gethostname()}:{os.getpid()}:{generate_cuid()[:8]}"
