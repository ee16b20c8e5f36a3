"""
Include resolver for @ign-include:path@ directives

Splices the fully processed contents of another template file in place of
the directive. Included text runs through the whole content pipeline with a
derived context, so depth and cycles are tracked across every level.

Path rules:
    /shared/header.txt   relative to the template root
    parts/footer.txt     relative to the including file's directory

Paths with a '..' segment, and paths that normalize outside the template
root, are rejected.
"""

import os
from pathlib import Path, PurePosixPath
from typing import Callable, List

from ..models.directives import DirectiveKind
from ..models.parser import DirectiveMatch, Literal, ParseContext, Token
from .errors import ParseError, ParseErrorKind
from .log import LOG

ContentParser = Callable[[str, ParseContext], str]


def templateRoot_resolve(context: ParseContext) -> str:
    """Absolute template root (the working directory when unset)"""
    return os.path.abspath(context.template_root or ".")


def currentFile_resolve(context: ParseContext) -> str:
    """Absolute path of the file being processed ("" when unset)"""
    if not context.current_file:
        return ""
    return os.path.normpath(os.path.join(templateRoot_resolve(context), context.current_file))


def includePath_resolve(include_path: str, context: ParseContext) -> str:
    """
    Resolve an include path against the template root or current file

    Args:
        include_path: Directive argument (already stripped)
        context: Current parse context

    Returns:
        Normalized absolute path of the include target

    Raises:
        ValueError: Path has a '..' segment or escapes the template root
    """
    if ".." in PurePosixPath(include_path.replace("\\", "/")).parts:
        raise ValueError(f"include path contains '..': {include_path}")

    root = templateRoot_resolve(context)
    if include_path.startswith("/"):
        resolved = os.path.join(root, include_path.lstrip("/"))
    else:
        current = currentFile_resolve(context)
        base = os.path.dirname(current) if current else root
        resolved = os.path.join(base, include_path)

    resolved = os.path.normpath(resolved)
    if os.path.commonpath([root, resolved]) != root:
        raise ValueError(f"include path escapes template root: {include_path}")

    return resolved


def include_expand(match: DirectiveMatch, context: ParseContext, content_parse: ContentParser) -> str:
    """
    Produce the processed text that replaces one include directive

    Args:
        match: The @ign-include@ directive
        context: Context of the including file
        content_parse: Content pipeline entry, called on the target's text

    Returns:
        Fully resolved text of the include target

    Raises:
        ParseError: MAX_INCLUDE_DEPTH, INVALID_DIRECTIVE_SYNTAX (empty path),
                    INCLUDE_NOT_FOUND, CIRCULAR_INCLUDE, or any failure of
                    the included file's own processing
    """
    if context.include_depth >= context.max_include_depth:
        raise ParseError(
            ParseErrorKind.MAX_INCLUDE_DEPTH,
            f"maximum include depth ({context.max_include_depth}) exceeded",
            file=context.current_file,
            line=match.line,
            directive=match.raw_text,
        )

    include_path = match.args.strip()
    if not include_path:
        raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX, "include path is empty",
                         file=context.current_file, line=match.line, directive=match.raw_text)

    try:
        target = includePath_resolve(include_path, context)
    except ValueError as exc:
        raise ParseError(
            ParseErrorKind.INCLUDE_NOT_FOUND,
            f"failed to resolve include path: {exc}",
            file=context.current_file,
            line=match.line,
            directive=match.raw_text,
        ) from exc

    # The file that started the chain counts as already open
    visited = list(context.include_stack)
    if not visited and context.current_file:
        visited.append(currentFile_resolve(context))

    if target in visited:
        chain = " -> ".join([*visited, target])
        raise ParseError(
            ParseErrorKind.CIRCULAR_INCLUDE,
            f"circular include detected: {chain}",
            file=context.current_file,
            line=match.line,
            directive=match.raw_text,
        )

    try:
        content = Path(target).read_bytes()
    except OSError as exc:
        raise ParseError(
            ParseErrorKind.INCLUDE_NOT_FOUND,
            f"failed to read include file: {target}",
            file=context.current_file,
            line=match.line,
            directive=match.raw_text,
        ) from exc

    LOG(f"Including {target} (depth {context.include_depth + 1})", level=3)
    child = context.context_derive(target, visited)
    return content_parse(content.decode("utf-8", "surrogateescape"), child)


def includes_resolve(
    tokens: List[Token], context: ParseContext, content_parse: ContentParser
) -> List[Token]:
    """
    Replace every include directive with its processed target

    Includes are expanded right to left; each expansion is spliced as a
    literal so the parent's later passes never reinterpret it.
    """
    resolved = list(tokens)
    for index in reversed(range(len(resolved))):
        token = resolved[index]
        if isinstance(token, DirectiveMatch) and token.kind is DirectiveKind.INCLUDE:
            resolved[index] = Literal(include_expand(token, context, content_parse))
    return resolved
