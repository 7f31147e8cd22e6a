"""
Explicit route table for the edge router.

Routes are declared as ``(method, pattern, handler)`` where the pattern is a
slash-separated path whose ``{name}`` segments each match exactly one
URL-decoded path segment. Ambiguous declarations are rejected when the table
is built; at request time the most specific route (most literal segments)
is tried first.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
from urllib.parse import unquote

from shared.errors import RouteConflictError

Handler = Callable[[Any], Awaitable[Any]]


def split_path(path: str) -> List[str]:
    """Split a raw (still percent-encoded) path into decoded segments.

    One leading and one trailing slash are dropped; interior empty segments
    are kept so ``/a//b`` never matches a two-segment route.
    """
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    if not path:
        return []
    return [unquote(segment) for segment in path.split("/")]


def _is_param(segment: str) -> bool:
    return len(segment) > 2 and segment.startswith("{") and segment.endswith("}")


@dataclass(frozen=True)
class Route:
    """One ``method + segments -> handler`` entry."""

    method: str
    segments: Tuple[str, ...]
    handler: Handler = field(compare=False)
    name: str = ""

    @classmethod
    def parse(cls, method: str, pattern: str, handler: Handler, name: str = "") -> "Route":
        segments = tuple(segment for segment in pattern.strip("/").split("/") if segment)
        seen = set()
        for segment in segments:
            if _is_param(segment):
                param = segment[1:-1]
                if param in seen:
                    raise RouteConflictError(f"Duplicate parameter '{param}' in {pattern}")
                seen.add(param)
        return cls(method.upper(), segments, handler, name or getattr(handler, "__name__", ""))

    @property
    def pattern(self) -> str:
        return "/" + "/".join(self.segments)

    @property
    def literal_count(self) -> int:
        return sum(1 for segment in self.segments if not _is_param(segment))

    def overlaps(self, other: "Route") -> bool:
        """True when some concrete path would be matched by both routes."""
        if self.method != other.method or len(self.segments) != len(other.segments):
            return False
        for mine, theirs in zip(self.segments, other.segments):
            if _is_param(mine) or _is_param(theirs):
                continue
            if mine != theirs:
                return False
        return True

    def match(self, parts: Sequence[str]) -> Optional[Dict[str, str]]:
        if len(parts) != len(self.segments):
            return None
        params: Dict[str, str] = {}
        for segment, part in zip(self.segments, parts):
            if _is_param(segment):
                if not part:
                    return None
                params[segment[1:-1]] = part
            elif segment != part:
                return None
        return params


class RouteTable:
    """Read-only after construction; ``add`` is only called while building."""

    def __init__(self, routes: Iterable[Route] = ()):
        self._routes: List[Route] = []
        for route in routes:
            self._insert(route)

    def add(self, method: str, pattern: str, handler: Handler, name: str = "") -> Route:
        route = Route.parse(method, pattern, handler, name)
        self._insert(route)
        return route

    def route(self, method: str, pattern: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``add``."""
        def decorator(handler: Handler) -> Handler:
            self.add(method, pattern, handler)
            return handler
        return decorator

    def _insert(self, route: Route) -> None:
        for existing in self._routes:
            # Overlapping routes are fine when one is strictly more specific.
            if existing.overlaps(route) and existing.literal_count == route.literal_count:
                raise RouteConflictError(
                    f"{route.method} {route.pattern} is ambiguous with {existing.method} {existing.pattern}",
                    {"route": route.pattern, "existing": existing.pattern},
                )
        self._routes.append(route)
        self._routes.sort(key=lambda r: -r.literal_count)

    def match(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        """Return the first (most specific) route matching ``method`` and ``path``."""
        method = method.upper()
        parts = split_path(path)
        for route in self._routes:
            if route.method != method:
                continue
            params = route.match(parts)
            if params is not None:
                return route, params
        return None

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)


@dataclass
class ResourceFamily:
    """A group of routes that share one or more URL prefixes."""

    name: str
    prefixes: Tuple[str, ...]
    table: RouteTable

    def owns(self, path: str) -> bool:
        return any(path == prefix or path.startswith(prefix + "/") for prefix in self.prefixes)


class EdgeDispatcher:
    """Two-level dispatch: prefix split into a family, then the family's route table."""

    def __init__(self, families: Iterable[ResourceFamily]):
        self.families: List[ResourceFamily] = []
        claimed: Dict[str, str] = {}
        for family in families:
            for prefix in family.prefixes:
                if prefix in claimed:
                    raise RouteConflictError(
                        f"Prefix {prefix} claimed by both {claimed[prefix]} and {family.name}"
                    )
                claimed[prefix] = family.name
            self.families.append(family)

    def family_for(self, path: str) -> Optional[ResourceFamily]:
        for family in self.families:
            if family.owns(path):
                return family
        return None

    def resolve(self, method: str, path: str) -> Optional[Tuple[ResourceFamily, Route, Dict[str, str]]]:
        family = self.family_for(path)
        if family is None:
            return None
        matched = family.table.match(method, path)
        if matched is None:
            return None
        route, params = matched
        return family, route, params
