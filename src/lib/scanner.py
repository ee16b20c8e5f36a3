"""
Directive scanner for @ign-<verb>[:<args>]@ syntax

Tokenizes template text (or a single path component) into an ordered list
of directive matches, and splits the text into the token list every
resolution pass works on.

Grammar:
    @ign-<verb>@ or @ign-<verb>:<args>@
    <verb>  one or more lowercase letters
    <args>  everything up to (not including) the next '@'

The literal-escape verb is special: @ign-raw:...@ may carry '@' characters,
including complete directives, so it has its own closing rule:

    Starting after '@ign-raw:', consume either a complete nested directive
    (nested @ign-raw: handled by this same rule) or any single non-'@'
    character. The first '@' that does not begin a complete nested
    directive closes the escape. Without such an '@', the nearest
    following '@' closes it.

Example:
    >>> [m.raw_text for m in directives_find("a @ign-raw:@ign-var:x@@ b")]
    ['@ign-raw:@ign-var:x@@']
    >>> directives_find("a @ign-raw:@ign-var:x@@ b")[0].args
    '@ign-var:x@'
"""

import re
from typing import Dict, List, Optional, Tuple

from ..models.directives import DIRECTIVE_PREFIX, DirectiveKind, kind_fromName
from ..models.parser import DirectiveMatch, Literal, Token

DIRECTIVE_PATTERN = re.compile(r'@ign-([a-z]+)(?::([^@]*))?@')
RAW_OPEN: str = "@ign-raw:"


def rawClose_find(text: str, pos: int,
                  closes: Optional[Dict[int, Optional[int]]] = None) -> Optional[int]:
    """
    Find the closing '@' of a literal-escape whose content starts at pos

    Nested escapes are tracked on an explicit stack, so nesting depth is
    bounded only by the text length. Where a scan resumes decides where it
    ends, so every resume offset's outcome is recorded in closes and never
    scanned twice. Callers scanning one text repeatedly may share closes.

    Args:
        text: Text being scanned
        pos: Offset just past '@ign-raw:'
        closes: Resume offset -> outcome, filled as the scan goes

    Returns:
        Offset of the closing '@', or None if the nesting rule finds none

    Example:
        For "@ign-raw:@ign-var:x@@" and pos=9 returns 20: the nested
        "@ign-var:x@" is consumed whole and the final '@' closes.
    """
    if closes is None:
        closes = {}
    frames: List[Tuple[int, List[int]]] = []
    resumes = [pos]
    cursor = pos
    while True:
        if cursor in closes:
            result = closes[cursor]
        else:
            at = text.find('@', cursor)
            if at == -1:
                result = None
            elif text.startswith(RAW_OPEN, at):
                frames.append((at, resumes))
                cursor = at + len(RAW_OPEN)
                resumes = [cursor]
                continue
            else:
                nested = DIRECTIVE_PATTERN.match(text, at)
                if nested:
                    cursor = nested.end()
                    continue
                result = at

        # the innermost open escape ends with result; unwind into its parent
        while True:
            for offset in resumes:
                closes[offset] = result
            if not frames:
                return result
            opener, resumes = frames.pop()
            if result is None:
                # an unclosed nested escape makes its parent close on the opener
                result = opener
                continue
            cursor = result + 1
            resumes.append(cursor)
            break


def directives_find(text: str) -> List[DirectiveMatch]:
    """
    Scan text for directives in a single left-to-right pass

    Unknown verbs still produce matches (kind UNKNOWN) so validation can
    report them. A '@ign-' with no complete directive shape is plain text.

    Args:
        text: Template text or path component

    Returns:
        DirectiveMatch list sorted by start offset, spans never overlapping
    """
    matches: List[DirectiveMatch] = []
    closes: Dict[int, Optional[int]] = {}
    pos = 0
    line = 1
    line_pos = 0

    while True:
        start = text.find(DIRECTIVE_PREFIX, pos)
        if start == -1:
            break

        line += text.count('\n', line_pos, start)
        line_pos = start

        if text.startswith(RAW_OPEN, start):
            content_start = start + len(RAW_OPEN)
            close = rawClose_find(text, content_start, closes)
            if close is None:
                close = text.find('@', content_start)
            if close != -1:
                matches.append(DirectiveMatch(
                    kind=DirectiveKind.RAW,
                    start=start,
                    end=close + 1,
                    name="raw",
                    args=text[content_start:close],
                    raw_text=text[start:close + 1],
                    line=line,
                ))
                pos = close + 1
                continue

        match = DIRECTIVE_PATTERN.match(text, start)
        if not match:
            pos = start + 1
            continue

        name = match.group(1)
        matches.append(DirectiveMatch(
            kind=kind_fromName(name),
            start=start,
            end=match.end(),
            name=name,
            args=match.group(2) or "",
            raw_text=match.group(0),
            line=line,
        ))
        pos = match.end()

    return matches


def tokens_split(text: str) -> List[Token]:
    """
    Split text into the token list used by the resolution passes

    Literal-escape directives become Literal tokens right away, so no later
    pass ever sees their content. Other directives stay DirectiveMatch
    tokens; text between them is kept as plain str tokens.

    Example:
        >>> tokens_split("a @ign-raw:@ign-var:x@@ b")
        ['a ', Literal(text='@ign-var:x@'), ' b']
    """
    tokens: List[Token] = []
    pos = 0

    for match in directives_find(text):
        if match.start > pos:
            tokens.append(text[pos:match.start])
        if match.kind is DirectiveKind.RAW:
            tokens.append(Literal(match.args))
        else:
            tokens.append(match)
        pos = match.end

    if pos < len(text):
        tokens.append(text[pos:])

    return tokens


def tokens_join(tokens: List[Token]) -> str:
    """
    Render a token list back to text

    Literals emit their text; directives still present (unknown verbs, or
    verbs a pipeline does not honor) emit their original text.
    """
    parts = []
    for token in tokens:
        if isinstance(token, str):
            parts.append(token)
        elif isinstance(token, Literal):
            parts.append(token.text)
        else:
            parts.append(token.raw_text)
    return ''.join(parts)
