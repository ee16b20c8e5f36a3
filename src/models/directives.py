"""
Directive vocabulary

Defines the fixed set of @ign-<verb>@ directive kinds, the accepted type
annotations, and the verb -> kind mapping used by the scanner.
"""

from enum import Enum
from typing import Dict, FrozenSet


class DirectiveKind(Enum):
    """
    Kinds of ign directives

    Used by the scanner to tag matches and by each pass to pick out the
    tokens it resolves.
    """
    VAR = "var"            # @ign-var:name[:type][=default]@
    COMMENT = "comment"    # @ign-comment:name@
    RAW = "raw"            # @ign-raw:LITERAL@
    IF = "if"              # @ign-if:name@
    ELSE = "else"          # @ign-else@
    ENDIF = "endif"        # @ign-endif@
    INCLUDE = "include"    # @ign-include:path@
    UNKNOWN = "unknown"


DIRECTIVE_PREFIX: str = "@ign-"

VERB_KINDS: Dict[str, DirectiveKind] = {
    kind.value: kind for kind in DirectiveKind if kind is not DirectiveKind.UNKNOWN
}

# Type annotations accepted by @ign-var:name:type@
VAR_TYPES: FrozenSet[str] = frozenset({"string", "int", "bool"})


def kind_fromName(name: str) -> DirectiveKind:
    """Map a verb to its DirectiveKind, UNKNOWN for unrecognized verbs"""
    return VERB_KINDS.get(name, DirectiveKind.UNKNOWN)
