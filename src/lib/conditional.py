"""
Conditional resolver for @ign-if@ / @ign-else@ / @ign-endif@ blocks

Blocks are paired with a stack into a tree, then evaluated top-down. Only
the branch a condition selects is evaluated further, so nothing inside a
discarded branch (nested conditions included) is ever read or required.

Example:
    Source: "@ign-if:a@X@ign-if:b@Y@ign-endif@@ign-endif@"
    a=True, b=True   -> "XY"
    a=False          -> ""   (b is never looked up)
"""

from typing import List, Union

from ..models.directives import DirectiveKind
from ..models.parser import ConditionalBlock, DirectiveMatch, Token
from .errors import ParseError, ParseErrorKind
from .log import LOG
from .variables import Variables

Node = Union[Token, ConditionalBlock]


def blocks_build(tokens: List[Token]) -> List[Node]:
    """
    Pair conditional directives into a tree of ConditionalBlocks

    Non-conditional tokens are kept in order inside whichever branch they
    fall in; text around and between directives is kept exactly.

    Args:
        tokens: Token list from scanner.tokens_split()

    Returns:
        Top-level node list

    Raises:
        ParseError: INVALID_DIRECTIVE_SYNTAX for a stray or repeated
                    @ign-else@, a stray @ign-endif@ or an empty condition;
                    UNCLOSED_BLOCK when an @ign-if@ is never closed
                    (reported with the outermost unclosed @ign-if@)
    """
    root: List[Node] = []
    stack: List[ConditionalBlock] = []
    in_else: List[bool] = []

    def branch_current() -> List[Node]:
        if not stack:
            return root
        return stack[-1].else_content if in_else[-1] else stack[-1].if_content

    for token in tokens:
        if not isinstance(token, DirectiveMatch):
            branch_current().append(token)
            continue

        if token.kind is DirectiveKind.IF:
            condition = token.args.strip()
            if not condition:
                raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                                 "condition variable is empty",
                                 line=token.line, directive=token.raw_text)
            stack.append(ConditionalBlock(
                condition=condition,
                start=token.start,
                end=token.end,
                if_match=token,
            ))
            in_else.append(False)

        elif token.kind is DirectiveKind.ELSE:
            if not stack:
                raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                                 "@ign-else@ without matching @ign-if:",
                                 line=token.line, directive=token.raw_text)
            if in_else[-1]:
                raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                                 f"second @ign-else@ in @ign-if:{stack[-1].condition}@ block",
                                 line=token.line, directive=token.raw_text)
            in_else[-1] = True

        elif token.kind is DirectiveKind.ENDIF:
            if not stack:
                raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                                 "@ign-endif@ without matching @ign-if:",
                                 line=token.line, directive=token.raw_text)
            block = stack.pop()
            in_else.pop()
            block.end = token.end
            branch_current().append(block)

        else:
            branch_current().append(token)

    if stack:
        unclosed = stack[0].if_match
        raise ParseError(
            ParseErrorKind.UNCLOSED_BLOCK,
            f"unclosed @ign-if:{unclosed.args}@ block (missing @ign-endif@)",
            line=unclosed.line,
            directive=unclosed.raw_text,
        )

    return root


def blocks_evaluate(nodes: List[Node], variables: Variables) -> List[Token]:
    """
    Flatten a block tree by evaluating conditions top-down

    Args:
        nodes: Output of blocks_build()
        variables: Store holding the boolean condition variables

    Returns:
        Token list with every conditional replaced by its chosen branch

    Raises:
        ParseError: TYPE_MISMATCH when a reached condition is absent or
                    not boolean
    """
    tokens: List[Token] = []

    for node in nodes:
        if not isinstance(node, ConditionalBlock):
            tokens.append(node)
            continue

        value = variables.get(node.condition)
        if not isinstance(value, bool):
            found = "undefined" if value is None else type(value).__name__
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"condition variable must be boolean: {node.condition} ({found})",
                line=node.if_match.line,
                directive=node.if_match.raw_text,
            )

        LOG(f"Condition {node.condition}={value} at line {node.if_match.line}", level=3)
        branch = node.if_content if value else node.else_content
        tokens.extend(blocks_evaluate(branch, variables))

    return tokens


def conditionals_resolve(tokens: List[Token], variables: Variables) -> List[Token]:
    """Resolve every conditional block in a token list"""
    return blocks_evaluate(blocks_build(tokens), variables)
