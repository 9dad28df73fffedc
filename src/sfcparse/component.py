"""Parse a whole single-file component: script block plus template body."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sfcparse.core.config import SfcConfig
from sfcparse.core.logging import get_logger
from sfcparse.markup import MarkupDocument, MarkupElement, build_markup_tree
from sfcparse.script import ScriptParser, ScriptProgram, TreeSitterScriptParser
from sfcparse.template import TemplateResult, parse_script_block, transform_template

__all__ = [
    "ComponentRegions",
    "ComponentResult",
    "extract_regions",
    "parse_component",
]


@dataclass(frozen=True, slots=True)
class ComponentRegions:
    """Top-level blocks of a component.

    Only the first ``<script>`` and the first ``<template>`` count; every
    ``<style>`` is kept.
    """

    script: MarkupElement | None = None
    template: MarkupElement | None = None
    styles: tuple[MarkupElement, ...] = ()


@dataclass(frozen=True, slots=True)
class ComponentResult:
    """Parsed script program plus the transformed template, if any."""

    script: ScriptProgram
    template: TemplateResult | None = None
    styles: tuple[MarkupElement, ...] = ()


def extract_regions(document: MarkupDocument) -> ComponentRegions:
    """Pick the script, template and style elements out of ``document``."""

    script: MarkupElement | None = None
    template: MarkupElement | None = None
    styles: list[MarkupElement] = []

    for child in document.children:
        if not isinstance(child, MarkupElement):
            continue
        if child.name == "script":
            script = script or child
        elif child.name == "template":
            template = template or child
        elif child.name == "style":
            styles.append(child)

    return ComponentRegions(script=script, template=template, styles=tuple(styles))


def parse_component(
    code: str,
    *,
    file_path: str | Path | None = None,
    config: SfcConfig | None = None,
    parse_script: ScriptParser | None = None,
    document: MarkupDocument | None = None,
) -> ComponentResult:
    """Parse ``code`` as a component, or as plain script for other files.

    Args:
        code: Whole file contents.
        file_path: Used to decide whether ``code`` is a component; anything
            not ending in a configured component extension is parsed as
            script only.
        config: Settings; defaults to :class:`SfcConfig`.
        parse_script: Script parser; defaults to the tree-sitter parser for
            ``config.script.language``.
        document: Pre-built markup tree of ``code``. Built with tree-sitter
            when omitted.

    Raises:
        ScriptSyntaxError: If the script block itself cannot be parsed.
            Template expression errors never raise; they are recorded on the
            expression containers.
    """

    config = config or SfcConfig()
    parse_script = parse_script or TreeSitterScriptParser(config.script.language)
    logger = get_logger(__name__, file_path=str(file_path) if file_path else None)

    if not config.is_component(file_path):
        logger.debug("plain-script", length=len(code))
        return ComponentResult(script=parse_script(code))

    if document is None:
        document = build_markup_tree(code, container_tags=config.template.container_tags)
    regions = extract_regions(document)

    script = parse_script_block(code, regions.script, parse_script)
    template = _transform_template_region(code, regions.template, parse_script, config)

    logger.info(
        "component-parsed",
        script_tokens=len(script.tokens),
        template_tokens=len(template.tokens) if template else 0,
        styles=len(regions.styles),
    )
    return ComponentResult(script=script, template=template, styles=regions.styles)


def _transform_template_region(
    code: str,
    element: MarkupElement | None,
    parse_script: ScriptParser,
    config: SfcConfig,
) -> TemplateResult | None:
    if element is None:
        return None

    lang_attribute = element.attribute("lang")
    lang = (lang_attribute.value if lang_attribute else "") or "html"
    if lang.lower() not in config.template.languages:
        get_logger(__name__).debug("template-language-unsupported", lang=lang)
        return None

    return transform_template(
        (element,),
        code,
        parse_script,
        settings=config.template,
    )
