"""
ign - project scaffolding from directive templates

Templates are ordinary source trees annotated with @ign-<verb>@ directives,
in file contents and in file paths.
"""

__version__ = "0.1.0"

from .lib import Parser, Generator, Variables, ParseError, ParseErrorKind, template_load, LOG

__all__ = [
    "Parser",
    "Generator",
    "Variables",
    "ParseError",
    "ParseErrorKind",
    "template_load",
    "LOG",
    "__version__",
]
