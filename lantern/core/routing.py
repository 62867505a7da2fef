"""
Route registry: named route descriptors and reverse URL building.

Path templates use ``:param`` for required and ``:param?`` for optional
segments, e.g. ``/user/set-password/:token`` or ``/blog/:page?``.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from urllib.parse import quote, unquote

from ..common.exceptions import RouteNotFoundError, UnresolvedRouteError

SEGMENT_PATTERN = re.compile(r'/:(\w+)(\?)?')
SUPPORTED_METHODS = ('GET', 'POST')


@dataclass(frozen=True)
class RouteDescriptor:
    name: str
    path: str
    methods: tuple
    handler: Callable[..., Any]
    middlewares: tuple = field(default_factory=tuple)
    rate_limit: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'methods', tuple(m.upper() for m in self.methods))
        object.__setattr__(self, 'middlewares', tuple(self.middlewares))

    @property
    def segments(self) -> list[tuple[str, bool]]:
        """(name, optional) for every parameter segment, in path order."""
        return [(m.group(1), bool(m.group(2))) for m in SEGMENT_PATTERN.finditer(self.path)]


def flask_rules(path: str) -> list[str]:
    """
    Translates a path template into werkzeug rules.

    Werkzeug has no optional segments, so one rule is produced for every
    combination of present optional segments, the complete rule first.
    """
    optional = [m.span() for m in SEGMENT_PATTERN.finditer(path) if m.group(2)]

    rules = []
    for keep in itertools.product((True, False), repeat=len(optional)):
        kept = {span for span, flag in zip(optional, keep) if flag}
        rule = SEGMENT_PATTERN.sub(
            lambda m: '' if m.group(2) and m.span() not in kept else f'/<{m.group(1)}>',
            path,
        ) or '/'
        if rule not in rules:
            rules.append(rule)
    return rules


class RouteRegistry:
    """
    Holds route descriptors by name.

    Registering a name twice replaces the earlier descriptor; the replacement
    is reported as a warning when a logger is attached.
    """

    def __init__(self, logger=None):
        self._routes: dict[str, RouteDescriptor] = {}
        self.logger = logger

    def __contains__(self, name) -> bool:
        return name in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> list[RouteDescriptor]:
        return list(self._routes.values())

    def register(self, descriptor: RouteDescriptor) -> None:
        previous = self._routes.get(descriptor.name)
        if previous is not None and previous != descriptor and self.logger is not None:
            self.logger.warning(
                f"route {descriptor.name} registered again, {previous.path} replaced by {descriptor.path}"
            )
        self._routes[descriptor.name] = descriptor

    def get(self, name: str) -> RouteDescriptor:
        try:
            return self._routes[name]
        except KeyError:
            raise RouteNotFoundError(name) from None

    def resolve(self, name: str) -> str:
        return self.get(name).path

    def build(self, name: str, params: dict = None) -> str:
        params = params or {}

        def _replace(match):
            key, optional = match.group(1), bool(match.group(2))
            value = params.get(key)
            if value is None or value == '':
                if optional:
                    return ''
                raise UnresolvedRouteError(name, key)
            return '/' + quote(str(value), safe='')

        return SEGMENT_PATTERN.sub(_replace, self.resolve(name)) or '/'

    def match(self, name: str, path: str) -> Optional[dict]:
        """Returns the params of ``path`` under route ``name`` or None when it does not match."""
        template = self.resolve(name)
        pattern = ''
        position = 0
        for m in SEGMENT_PATTERN.finditer(template):
            pattern += re.escape(template[position:m.start()])
            if m.group(2):
                pattern += f'(?:/(?P<{m.group(1)}>[^/]+))?'
            else:
                pattern += f'/(?P<{m.group(1)}>[^/]+)'
            position = m.end()
        pattern += re.escape(template[position:])

        candidate = re.fullmatch(pattern, path) or (path == '/' and re.fullmatch(pattern, ''))
        if not candidate:
            return None
        return {key: unquote(value) for key, value in candidate.groupdict().items() if value is not None}
