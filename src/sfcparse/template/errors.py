"""Exceptions raised by the template transformation core."""

from __future__ import annotations


class TemplateInvariantError(AssertionError):
    """Raised when the node tree and the token stream disagree.

    These failures indicate a bug in the traversal (or a caller querying a
    boundary that was never tokenized) and are never recovered from.
    """


def invariant(condition: bool, message: str) -> None:
    """Raise :class:`TemplateInvariantError` unless ``condition`` holds.

    Example:
        >>> invariant(1 < 2, "ordering")
        >>> invariant(False, "broken")
        Traceback (most recent call last):
        ...
        sfcparse.template.errors.TemplateInvariantError: broken
    """

    if not condition:
        raise TemplateInvariantError(message)


__all__ = ["TemplateInvariantError", "invariant"]
