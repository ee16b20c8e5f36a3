"""
Models package for ign

Contains data structures shared by the directive engine, the template
loader and the generation pipeline.
"""

from .state import ProgramState, pipeline
from .directives import DirectiveKind, DIRECTIVE_PREFIX
from .parser import DirectiveMatch, Literal, Token, ConditionalBlock, ParseContext
from .template import VarDef, TemplateSettings, TemplateManifest, TemplateFile, Template

__all__ = [
    "ProgramState",
    "pipeline",
    "DirectiveKind",
    "DIRECTIVE_PREFIX",
    "DirectiveMatch",
    "Literal",
    "Token",
    "ConditionalBlock",
    "ParseContext",
    "VarDef",
    "TemplateSettings",
    "TemplateManifest",
    "TemplateFile",
    "Template",
]
