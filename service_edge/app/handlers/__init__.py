"""
Route handlers, one module per resource family.
"""

from typing import List

from ..routing import ResourceFamily
from . import analytics, backups, jobs, pages, webhooks, workers


def all_families() -> List[ResourceFamily]:
    return [
        workers.family(),
        pages.family(),
        analytics.family(),
        jobs.family(),
        webhooks.family(),
        backups.family(),
    ]


__all__ = ["all_families"]
