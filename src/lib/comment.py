"""
Comment resolver for @ign-comment@ lines

Lets a directive hide inside a host-language comment so the template stays
valid source:

    // @ign-comment:import_line@
    #  @ign-comment:shebang@
    -- @ign-comment:sql@
    /* @ign-comment:code@ */
    <!-- @ign-comment:tag@ -->

Processing is strictly per line. The comment marker and the directive are
removed and the variable's value is written at the line's original
indentation.
"""

from typing import Dict, List

from ..models.directives import DirectiveKind
from ..models.parser import DirectiveMatch, Literal, Token
from .errors import ParseError, ParseErrorKind
from .scanner import tokens_join
from .variables import Variables, value_render

# Line markers are tried first and have no closing part
LINE_MARKERS = ("", "//", "#", "--")
BLOCK_MARKERS: Dict[str, str] = {
    "/*": "*/",
    "<!--": "-->",
}


def comment_is(token: Token) -> bool:
    return isinstance(token, DirectiveMatch) and token.kind is DirectiveKind.COMMENT


def lines_split(tokens: List[Token]) -> List[List[Token]]:
    """
    Split a token list at newlines

    Text and literal tokens are cut at '\\n' (literals stay literal);
    directives never contain newlines. The newlines themselves are dropped,
    one per boundary between consecutive lines.
    """
    lines: List[List[Token]] = [[]]

    for token in tokens:
        if isinstance(token, DirectiveMatch):
            lines[-1].append(token)
            continue

        text = token if isinstance(token, str) else token.text
        for index, piece in enumerate(text.split('\n')):
            if index > 0:
                lines.append([])
            if piece:
                lines[-1].append(piece if isinstance(token, str) else Literal(piece))

    return lines


def commentLine_resolve(line: List[Token], variables: Variables) -> str:
    """
    Resolve one line holding an @ign-comment@ directive

    Args:
        line: Tokens of a single line (no newlines)
        variables: Store holding the referenced variable

    Returns:
        Original indentation followed by the rendered value

    Raises:
        ParseError: INVALID_DIRECTIVE_SYNTAX when anything other than
                    whitespace and one recognized comment marker surrounds
                    the directive, or the name is empty; MISSING_VARIABLE
                    when the variable is absent
    """
    positions = [index for index, token in enumerate(line) if comment_is(token)]
    directive = line[positions[0]]
    if len(positions) > 1:
        raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                         "more than one @ign-comment@ directive on a line",
                         line=directive.line, directive=directive.raw_text)

    prefix = tokens_join(line[:positions[0]])
    suffix = tokens_join(line[positions[0] + 1:])
    indent = prefix[:len(prefix) - len(prefix.lstrip(" \t"))]
    marker = prefix.strip()
    closing = suffix.strip()

    if marker in LINE_MARKERS:
        valid = closing == ""
    else:
        valid = BLOCK_MARKERS.get(marker) == closing
    if not valid:
        raise ParseError(
            ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
            "@ign-comment@ must be alone on its line, optionally inside a comment marker",
            line=directive.line,
            directive=directive.raw_text,
        )

    name = directive.args.strip()
    if not name:
        raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                         "variable name is empty in @ign-comment:",
                         line=directive.line, directive=directive.raw_text)
    if name not in variables:
        raise ParseError(ParseErrorKind.MISSING_VARIABLE,
                         f"variable not found: {name}",
                         line=directive.line, directive=directive.raw_text)

    # CRLF input: keep the carriage return the line ended with
    ending = "\r" if suffix.endswith("\r") else ""
    return indent + value_render(variables.get(name)) + ending


def comments_resolve(tokens: List[Token], variables: Variables) -> List[Token]:
    """
    Resolve every @ign-comment@ line in a token list

    Lines without the directive pass through untouched. Each resolved line
    becomes a literal so its value is never reinterpreted.
    """
    if not any(comment_is(token) for token in tokens):
        return tokens

    resolved: List[Token] = []
    for index, line in enumerate(lines_split(tokens)):
        if index > 0:
            resolved.append("\n")
        if any(comment_is(token) for token in line):
            resolved.append(Literal(commentLine_resolve(line, variables)))
        else:
            resolved.extend(line)

    return resolved
