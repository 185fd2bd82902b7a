"""
Background Jobs for the DNC compliance backend.

- change_list_worker: processes pending FTC change lists, oldest first

Usage:
    from dnc_backend.jobs import run_pending_change_lists

    summary = await run_pending_change_lists()
"""

from dnc_backend.jobs.change_list_worker import (
    DEFAULT_PENDING_LIMIT,
    build_default_controller,
    run_pending_change_lists,
)

__all__ = [
    'DEFAULT_PENDING_LIMIT',
    'build_default_controller',
    'run_pending_change_lists',
]
