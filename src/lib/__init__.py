"""
ign directive engine and project generator
"""

__version__ = "0.1.0"

from .errors import (
    ParseError,
    ParseErrorKind,
    VariableError,
    GeneratorError,
    GeneratorErrorKind,
)
from .variables import Variables, variables_fromDefinitions, variables_loadFile, variables_saveFile
from .parser import Parser
from .template import template_load
from .generator import Generator, GenerateResult
from .log import LOG, state_connectToLogger

__all__ = [
    "ParseError",
    "ParseErrorKind",
    "VariableError",
    "GeneratorError",
    "GeneratorErrorKind",
    "Variables",
    "variables_fromDefinitions",
    "variables_loadFile",
    "variables_saveFile",
    "Parser",
    "template_load",
    "Generator",
    "GenerateResult",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
