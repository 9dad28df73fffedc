"""Script parsing capability used for script blocks and template expressions."""

from __future__ import annotations

from .errors import ScriptParserUnavailableError, ScriptSyntaxError
from .models import ScriptNode, ScriptParser, ScriptProgram
from .treesitter import TreeSitterScriptParser

__all__ = [
    "ScriptNode",
    "ScriptParser",
    "ScriptParserUnavailableError",
    "ScriptProgram",
    "ScriptSyntaxError",
    "TreeSitterScriptParser",
]
