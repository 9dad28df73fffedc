"""Unified token streams and syntax trees for single-file components.

The package exposes version metadata plus the component entry point.

Example:
    >>> from sfcparse import __version__
    >>> __version__.split(".")[0]
    '0'
"""

from importlib import metadata

from sfcparse.component import (
    ComponentRegions,
    ComponentResult,
    extract_regions,
    parse_component,
)

try:
    __version__ = metadata.version("sfcparse")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "ComponentRegions",
    "ComponentResult",
    "extract_regions",
    "parse_component",
]
