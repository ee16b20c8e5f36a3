"""
Filename resolver for template paths

Applies the narrow path grammar to a '/'-separated template path: only
@ign-var@ and @ign-raw@ are honored, every other directive stays as text.
Each component is substituted and checked on its own, then the assembled
path is checked again.

Values come from the operator, so they are screened before they can reach
the filesystem: NUL bytes, ':', '.', '..' (anywhere) and path separators are
refused even though the same values are fine as content.

Example:
    >>> filename_parse("cmd/@ign-var:app_name@/@ign-var:name@.go",
    ...                Variables({"app_name": "myapp", "name": "handler"}))
    'cmd/myapp/handler.go'
"""

import posixpath
from typing import List

from ..models.directives import DirectiveKind
from ..models.parser import Literal
from .errors import ParseError, ParseErrorKind
from .log import LOG
from .scanner import tokens_split
from .variables import Variables, var_resolve


def security_error(message: str, path: str, directive: str = "") -> ParseError:
    return ParseError(ParseErrorKind.SECURITY_VIOLATION, message, file=path, directive=directive)


def filenameValue_check(value: str, path: str, directive: str) -> None:
    """
    Screen one substituted variable value

    Raises:
        ParseError: SECURITY_VIOLATION for NUL, ':', '.', '..', embedded
                    '..', '/' or '\\'
    """
    if "\x00" in value:
        problem = "contains a null byte"
    elif ":" in value:
        problem = "contains ':'"
    elif value == ".":
        problem = "is the current directory '.'"
    elif value == "..":
        problem = "is the parent directory '..'"
    elif ".." in value:
        problem = "contains path traversal '..'"
    elif "/" in value or "\\" in value:
        problem = "contains a path separator"
    else:
        return

    raise security_error(f"variable value {value!r} {problem}", path, directive)


def component_parse(component: str, variables: Variables, path: str) -> str:
    """Substitute @ign-var@ / @ign-raw@ in one path component"""
    parts: List[str] = []

    for token in tokens_split(component):
        if isinstance(token, str):
            parts.append(token)
        elif isinstance(token, Literal):
            parts.append(token.text)
        elif token.kind is DirectiveKind.VAR:
            value = var_resolve(token, variables)
            filenameValue_check(value, path, token.raw_text)
            parts.append(value)
        else:
            parts.append(token.raw_text)

    return "".join(parts)


def component_check(processed: str, original: str, path: str) -> None:
    """
    Check a substituted component

    Raises:
        ParseError: SECURITY_VIOLATION for '..', separators, or a blank result
    """
    if ".." in processed:
        raise security_error(
            f"filename component {processed!r} contains path traversal (..) "
            f"after variable substitution (original: {original!r})", path)
    if "/" in processed or "\\" in processed:
        raise security_error(
            f"filename component {processed!r} contains a path separator "
            f"after variable substitution (original: {original!r})", path)
    if not processed.strip():
        raise security_error(
            f"filename component {original!r} is empty after variable substitution", path)


def path_check(processed: str, path: str) -> None:
    """
    Check the assembled path

    Raises:
        ParseError: SECURITY_VIOLATION when absolute, resolving to '.', or
                    escaping upwards after normalization
    """
    if posixpath.isabs(processed):
        raise security_error(f"{processed!r} is an absolute path after variable substitution", path)

    normalized = posixpath.normpath(processed)
    if normalized == ".":
        raise security_error(f"{processed!r} resolves to the current directory", path)
    if normalized.startswith(".."):
        raise security_error(f"{processed!r} attempts path traversal", path)


def filename_parse(path: str, variables: Variables) -> str:
    """
    Resolve a template path to an output path

    Empty components (leading, trailing or doubled '/') are dropped.

    Args:
        path: '/'-separated template-relative path
        variables: Store for @ign-var@ lookups

    Returns:
        Substituted, validated path

    Raises:
        ParseError: SECURITY_VIOLATION for unsafe values or results; the
                    variable resolver's own kinds for missing or mistyped
                    variables
    """
    components: List[str] = []

    for component in path.split("/"):
        if not component:
            continue
        processed = component_parse(component, variables, path)
        component_check(processed, component, path)
        components.append(processed)

    result = "/".join(components)
    path_check(result, path)

    if result != path:
        LOG(f"Path {path} -> {result}", level=3)
    return result
