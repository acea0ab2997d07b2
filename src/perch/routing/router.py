"""Path-segment trie that maps ``(method, path)`` to a ``RouteMatch``.

Each trie node has three kinds of outgoing edges, tried in this order:
literal segments, one typed parameter and any number of catch-alls. A
catch-all swallows the rest of the path, including nothing at all, so
``/assets/{**path}`` answers ``/assets`` too.

Lookup backtracks. When a route's constraints reject the captured values
the search moves on to the next candidate, and catch-alls registered at
the same node are tried in the order they were added. A constraint that
raises counts as a rejection and is logged; it never reaches the caller.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from perch.errors import ConfigurationError, MethodNotAllowed, NotFound
from perch.routing.params import CONVERTERS
from perch.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("perch.routing")

_ANGLE_PARAM = re.compile(r"<[^>]*>")


def _segment(part: str, path: str) -> PathSegment:
    if not (part.startswith("{") and part.endswith("}")):
        return PathSegment(value=part)

    inner = part[1:-1]
    if inner.startswith("**"):
        name, kind = inner[2:] or "path", "path"
    else:
        name, _, kind = inner.partition(":")
        kind = kind or "str"
    if kind not in CONVERTERS:
        msg = f"Unknown converter {kind!r} in route {path!r}."
        raise ConfigurationError(msg)
    return PathSegment(value=part, is_param=True, param_name=name, param_type=kind)


def parse_path(path: str) -> list[PathSegment]:
    """Split a route template into segments.

    ``"/"`` has no segments. ``{name}`` and ``{name:int}`` capture one
    segment; ``{name:path}`` and its shorthand ``{**name}`` capture the
    remainder and may only come last. Angle-bracket parameters
    (``/users/<id>``) are rejected with a hint rather than silently treated
    as literals.
    """
    if _ANGLE_PARAM.search(path):
        msg = f"Route {path!r} uses <param> syntax; perch expects {{param}}."
        raise ConfigurationError(msg)

    segments = [_segment(part, path) for part in path.split("/") if part]
    if any(seg.is_catch_all for seg in segments[:-1]):
        msg = f"Catch-all segment in route {path!r} must be last."
        raise ConfigurationError(msg)
    return segments


@dataclass(slots=True)
class _CatchAll:
    name: str
    endpoints: dict[str, Route] = field(default_factory=dict)

    @property
    def constrained(self) -> bool:
        return any(route.constraints for route in self.endpoints.values())


@dataclass(slots=True)
class _Node:
    literals: dict[str, "_Node"] = field(default_factory=dict)
    # (name, compiled converter regex, child)
    param: tuple[str, re.Pattern[str], "_Node"] | None = None
    catch_alls: list[_CatchAll] = field(default_factory=list)
    endpoints: dict[str, Route] = field(default_factory=dict)

    def walk(self) -> Iterator["_Node"]:
        yield self
        for child in self.literals.values():
            yield from child.walk()
        if self.param is not None:
            yield from self.param[2].walk()


def _constraints_accept(route: Route, params: dict[str, str]) -> bool:
    for name, constraint in route.constraints.items():
        try:
            ok = constraint(params.get(name, ""))
        except Exception:
            logger.warning(
                "Constraint on %r for route %s raised; treating as no match",
                name,
                route.path,
                exc_info=True,
            )
            return False
        if not ok:
            return False
    return True


class Router:
    """Method-aware trie router.

    Routes are added while the app is being configured; ``compile()`` then
    closes the table::

        router = Router()
        router.add(Route("/api/health", health, frozenset({"GET"})))
        router.add(Route("/assets/{**path}", serve, frozenset({"GET", "HEAD"}),
                         constraints={"path": file_exists}))
        router.compile()
        router.match("GET", "/assets/app.js").path_params   # {"path": "app.js"}
    """

    __slots__ = ("_closed", "_trie")

    def __init__(self) -> None:
        self._trie = _Node()
        self._closed = False

    def add(self, route: Route) -> None:
        if self._closed:
            msg = f"Router is compiled; cannot add {route.path!r}."
            raise RuntimeError(msg)

        node = self._trie
        for seg in parse_path(route.path):
            if seg.is_catch_all:
                slot = self._catch_all_slot(node, seg.param_name or "path", route)
                slot.endpoints.update(dict.fromkeys(route.methods, route))
                return
            if not seg.is_param:
                node = node.literals.setdefault(seg.value, _Node())
                continue
            if node.param is None:
                regex = re.compile(rf"^{CONVERTERS[seg.param_type]}$")
                node.param = (seg.param_name or "", regex, _Node())
            node = node.param[2]

        node.endpoints.update(dict.fromkeys(route.methods, route))

    @staticmethod
    def _catch_all_slot(node: _Node, name: str, route: Route) -> _CatchAll:
        """Share an unconstrained catch-all when methods don't overlap.

        A constrained route always gets a slot of its own so a rejection can
        fall through to whatever was registered after it.
        """
        if not route.constraints:
            for slot in node.catch_alls:
                if (
                    slot.name == name
                    and not slot.constrained
                    and route.methods.isdisjoint(slot.endpoints)
                ):
                    return slot
        slot = _CatchAll(name=name)
        node.catch_alls.append(slot)
        return slot

    def compile(self) -> None:
        self._closed = True

    @property
    def routes(self) -> list[Route]:
        """Every registered route once, literals before parameters."""
        found: dict[int, Route] = {}
        for node in self._trie.walk():
            for route in node.endpoints.values():
                found.setdefault(id(route), route)
            for slot in node.catch_alls:
                for route in slot.endpoints.values():
                    found.setdefault(id(route), route)
        return list(found.values())

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolve *method* and *path* to a route.

        Raises ``MethodNotAllowed`` (carrying the methods that would have
        matched) when the path is known under other methods only, and
        ``NotFound`` otherwise.
        """
        parts = [part for part in path.split("/") if part]
        allowed: set[str] = set()
        found = self._search(self._trie, method, parts, {}, allowed)
        if found is not None:
            return found
        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")

    def _search(
        self,
        node: _Node,
        method: str,
        parts: list[str],
        params: dict[str, str],
        allowed: set[str],
    ) -> RouteMatch | None:
        if not parts:
            return self._pick(node.endpoints, method, params, allowed) or self._catch_all(
                node, method, "", params, allowed
            )

        head, rest = parts[0], parts[1:]
        child = node.literals.get(head)
        if child is not None:
            found = self._search(child, method, rest, params, allowed)
            if found is not None:
                return found

        if node.param is not None:
            name, regex, child = node.param
            if regex.match(head):
                found = self._search(child, method, rest, {**params, name: head}, allowed)
                if found is not None:
                    return found

        return self._catch_all(node, method, "/".join(parts), params, allowed)

    def _catch_all(
        self,
        node: _Node,
        method: str,
        remainder: str,
        params: dict[str, str],
        allowed: set[str],
    ) -> RouteMatch | None:
        for slot in node.catch_alls:
            found = self._pick(slot.endpoints, method, {**params, slot.name: remainder}, allowed)
            if found is not None:
                return found
        return None

    @staticmethod
    def _pick(
        endpoints: dict[str, Route],
        method: str,
        params: dict[str, str],
        allowed: set[str],
    ) -> RouteMatch | None:
        """Select the route for *method* when its constraints accept *params*.

        On a miss, methods whose routes would have accepted the same values
        are added to *allowed* so ``match()`` can answer 405 over 404.
        """
        verdicts: dict[int, bool] = {}

        def accepts(route: Route) -> bool:
            if id(route) not in verdicts:
                verdicts[id(route)] = _constraints_accept(route, params)
            return verdicts[id(route)]

        route = endpoints.get(method)
        if route is not None and accepts(route):
            return RouteMatch(route=route, path_params=params)
        allowed.update(m for m, other in endpoints.items() if m != method and accepts(other))
        return None
