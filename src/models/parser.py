"""
Parser-specific data models

Type-safe structures shared by the scanner and the resolution passes.
"""

from dataclasses import dataclass, field, replace
from typing import List, TYPE_CHECKING, Union

from ..config import appsettings
from .directives import DirectiveKind

if TYPE_CHECKING:
    from ..lib.variables import Variables


@dataclass(frozen=True)
class DirectiveMatch:
    """
    One scanned @ign-<verb>[:<args>]@ occurrence

    Returned by scanner.directives_find() in left-to-right order.

    Attributes:
        kind: DirectiveKind of the verb (UNKNOWN for unrecognized verbs)
        start: Offset of the leading '@' in the scanned text
        end: Offset just past the closing '@' (half-open span)
        name: Verb text (e.g. "var", "if", "loop")
        args: Text between ':' and the closing '@' ("" if absent)
        raw_text: The full matched text
        line: 1-based line number of start

    Example:
        For source "x @ign-var:name@" :
        DirectiveMatch(kind=DirectiveKind.VAR, start=2, end=16, name="var",
                       args="name", raw_text="@ign-var:name@", line=1)
    """
    kind: DirectiveKind
    start: int
    end: int
    name: str
    args: str
    raw_text: str
    line: int = 1


@dataclass(frozen=True)
class Literal:
    """
    Opaque text that no later pass may reinterpret

    Produced for @ign-raw:@ content, spliced include output, and values
    substituted by the comment and variable passes.
    """
    text: str


# A token is plain (still interpretable) text, a literal span or a directive
Token = Union[str, Literal, DirectiveMatch]


@dataclass
class ConditionalBlock:
    """
    A matched @ign-if@ / [@ign-else@] / @ign-endif@ region

    Attributes:
        condition: Name of the boolean variable tested
        start: Offset of the opening @ign-if@
        end: Offset just past the closing @ign-endif@
        if_content: Nodes emitted when the condition is true
        else_content: Nodes emitted when false (empty without @ign-else@)
        if_match: The opening directive, kept for error reporting

    Branch nodes are tokens or nested ConditionalBlocks.
    """
    condition: str
    start: int
    end: int
    if_match: DirectiveMatch
    if_content: List[Union[Token, "ConditionalBlock"]] = field(default_factory=list)
    else_content: List[Union[Token, "ConditionalBlock"]] = field(default_factory=list)


@dataclass
class ParseContext:
    """
    Per-invocation state threaded through the content pipeline

    Attributes:
        variables: Variable store used by every pass
        include_depth: Current include nesting depth (0 at top level)
        include_stack: Already-open include targets, for cycle detection
        template_root: Base directory for root-relative includes
        current_file: File whose content is being processed
        max_include_depth: Include nesting ceiling (appsettings.max_include_depth
            unless given)
    """
    variables: "Variables"
    include_depth: int = 0
    include_stack: List[str] = field(default_factory=list)
    template_root: str = ""
    current_file: str = ""
    max_include_depth: int = field(default_factory=lambda: appsettings.max_include_depth)

    def context_derive(self, target: str, stack: List[str]) -> "ParseContext":
        """
        Build the context for an included file

        The parent context is left untouched: depth is incremented, the
        target is appended to a copy of the visited stack, and the target
        becomes the current file.

        Args:
            target: Resolved path of the included file
            stack: Visited targets of the parent (including the parent itself)

        Returns:
            New ParseContext for processing target
        """
        return replace(
            self,
            include_depth=self.include_depth + 1,
            include_stack=[*stack, target],
            current_file=target,
        )
