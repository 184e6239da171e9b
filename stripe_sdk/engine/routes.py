"""
Endpoint registry - maps operation names to (path template, HTTP verb).

Reads take the current immutable snapshot without locking. Writes build a new
snapshot under a lock and swap it in, so registration at setup time never
serializes concurrent invocations.
"""

import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from loguru import logger

from stripe_sdk.engine.errors import ConfigurationError

PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


class HttpVerb(str, Enum):
    """Allowed HTTP verbs."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def sends_body(self) -> bool:
        return self in (HttpVerb.POST, HttpVerb.PUT, HttpVerb.PATCH)

    @classmethod
    def parse(cls, verb: "HttpVerb | str") -> "HttpVerb":
        if isinstance(verb, HttpVerb):
            return verb
        if isinstance(verb, str):
            try:
                return cls(verb.upper())
            except ValueError:
                pass
        raise ConfigurationError(
            f"Unsupported HTTP verb {verb!r}, expected one of "
            f"{', '.join(v.value for v in cls)}"
        )


@dataclass(frozen=True)
class Route:
    """A registered (name, path template, verb) triple."""

    name: str
    path_template: str
    verb: HttpVerb
    placeholders: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def create(cls, name: str, path_template: str, verb: HttpVerb | str) -> "Route":
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Operation name must be a non-empty string")
        if not isinstance(path_template, str) or not path_template.strip():
            raise ConfigurationError(
                f"Path template for '{name}' must be a non-empty string",
                operation=name,
            )
        try:
            parsed = HttpVerb.parse(verb)
        except ConfigurationError as e:
            raise ConfigurationError(str(e), operation=name) from None

        return cls(
            name=name,
            path_template=path_template,
            verb=parsed,
            placeholders=tuple(PLACEHOLDER_RE.findall(path_template)),
        )


class EndpointRegistry:
    """
    Copy-on-write mapping of operation name to Route.

    Usage:
        registry = EndpointRegistry()
        registry.register("get_customer", "/v1/customers/{customer_id}", "GET")
        route = registry.get("get_customer")
    """

    def __init__(self) -> None:
        self._routes: Mapping[str, Route] = MappingProxyType({})
        self._write_lock = threading.Lock()

    def register(self, name: str, path_template: str, verb: HttpVerb | str) -> Route:
        """Register or overwrite a route. Last write wins."""
        route = Route.create(name, path_template, verb)
        with self._write_lock:
            updated = dict(self._routes)
            replaced = updated.get(name)
            updated[name] = route
            self._routes = MappingProxyType(updated)

        if replaced is not None:
            logger.debug(
                f"Route '{name}' overridden: {replaced.verb.value} "
                f"{replaced.path_template} -> {route.verb.value} {route.path_template}"
            )
        else:
            logger.debug(f"Registered route: {name} {route.verb.value} {path_template}")
        return route

    def unregister(self, name: str) -> bool:
        """Remove a route. Returns False if it was not registered."""
        with self._write_lock:
            if name not in self._routes:
                return False
            updated = dict(self._routes)
            del updated[name]
            self._routes = MappingProxyType(updated)
        return True

    def get(self, name: str) -> Route | None:
        return self._routes.get(name)

    def routes(self) -> Mapping[str, Route]:
        """Current read-only snapshot."""
        return self._routes

    def __contains__(self, name: object) -> bool:
        return name in self._routes

    def __len__(self) -> int:
        return len(self._routes)
