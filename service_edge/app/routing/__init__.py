"""
Request routing for the edge router.
"""

from .context import RequestContext
from .table import EdgeDispatcher, ResourceFamily, Route, RouteTable, split_path

__all__ = [
    "EdgeDispatcher",
    "RequestContext",
    "ResourceFamily",
    "Route",
    "RouteTable",
    "split_path",
]
