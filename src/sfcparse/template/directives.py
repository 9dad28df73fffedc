"""Directive attribute classification and key decomposition."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import re

from sfcparse.core.config import DEFAULT_KNOWN_DIRECTIVES, TemplateSettings

__all__ = ["DirectiveParts", "DirectiveSyntax"]


@dataclass(frozen=True, slots=True)
class DirectiveParts:
    """Structural pieces of a directive attribute name."""

    name: str
    argument: str | None
    modifiers: tuple[str, ...]
    shorthand: bool


@dataclass(frozen=True, slots=True)
class DirectiveSyntax:
    """Directive naming rules: reserved prefix plus two shorthand sigils.

    Example:
        >>> syntax = DirectiveSyntax()
        >>> syntax.is_directive("v-on:click.stop"), syntax.is_directive("v-on:")
        (True, False)
        >>> syntax.decompose("v-on:click.stop")
        DirectiveParts(name='on', argument='click', modifiers=('stop',), shorthand=False)
        >>> syntax.decompose(":foo")
        DirectiveParts(name=':', argument='foo', modifiers=(), shorthand=True)
    """

    prefix: str = "v-"
    bind_shorthand: str = ":"
    event_shorthand: str = "@"
    known: frozenset[str] = frozenset(DEFAULT_KNOWN_DIRECTIVES)

    @classmethod
    def from_settings(cls, settings: TemplateSettings) -> "DirectiveSyntax":
        return cls(
            prefix=settings.directive_prefix,
            bind_shorthand=settings.bind_shorthand,
            event_shorthand=settings.event_shorthand,
            known=frozenset(settings.known_directives),
        )

    @property
    def pattern(self) -> re.Pattern[str]:
        return _compile_pattern(
            self.prefix, self.bind_shorthand, self.event_shorthand
        )

    def is_directive(self, name: str) -> bool:
        """Return ``True`` when the attribute ``name`` encodes a directive."""

        return self.pattern.match(name) is not None

    def decompose(self, raw: str) -> DirectiveParts:
        """Split ``raw`` into name, argument, modifiers and shorthand flag.

        Never raises; malformed names yield empty or absent fields.
        """

        name: str | None = None
        argument: str | None = None
        shorthand = False
        remain = raw

        for sigil in (self.bind_shorthand, self.event_shorthand):
            if remain.startswith(sigil):
                name = sigil
                shorthand = True
                remain = remain[len(sigil) :]
                break
        else:
            colon = remain.find(":")
            if colon != -1:
                name = remain[:colon]
                remain = remain[colon + 1 :]

        head, *modifiers = remain.split(".")
        if name is None:
            name = head
        else:
            argument = head

        if name.startswith(self.prefix):
            name = name[len(self.prefix) :]

        return DirectiveParts(
            name=name,
            argument=argument,
            modifiers=tuple(modifiers),
            shorthand=shorthand,
        )

    def canonical_name(self, parts: DirectiveParts) -> str:
        """Return the long-form directive name for ``parts``.

        Example:
            >>> syntax = DirectiveSyntax()
            >>> syntax.canonical_name(syntax.decompose("@click"))
            'on'
        """

        if parts.shorthand and parts.name == self.bind_shorthand:
            return "bind"
        if parts.shorthand and parts.name == self.event_shorthand:
            return "on"
        return parts.name

    def is_known(self, parts: DirectiveParts) -> bool:
        """Return ``True`` when ``parts`` names a built-in directive."""

        return self.canonical_name(parts) in self.known


@lru_cache(maxsize=8)
def _compile_pattern(prefix: str, bind: str, event: str) -> re.Pattern[str]:
    leads = "|".join(re.escape(lead) for lead in (prefix, bind, event))
    trailing = re.escape(bind + event)
    return re.compile(
        rf"^(?:{leads}).*[^.:{trailing}]$",
        re.DOTALL,
    )
