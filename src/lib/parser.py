"""
Directive engine for @ign-<verb>[:<args>]@ syntax

Turns template text into generated text by running the resolution passes
in a fixed order over one token list:

1. Raw-escape: @ign-raw:...@ spans become literals (scanner.tokens_split)
2. Include: @ign-include@ replaced by the processed target file
3. Conditional: @ign-if@ / @ign-else@ / @ign-endif@ blocks collapsed
4. Comment: @ign-comment@ lines replaced by their value
5. Variable: @ign-var@ replaced by its value
6. Restore: tokens joined back into text

Every substituted value enters the token list as a literal, so text
produced by one pass is never reinterpreted by a later one. Directives with
unknown verbs are left in the output unchanged; validate() reports them.

Content may be str or bytes. Bytes are decoded as UTF-8 with
surrogateescape, so arbitrary bytes outside directives survive the trip and
the result is bytes again.

Example:
    >>> parser = Parser()
    >>> parser.parse("Hello @ign-var:name@!", Variables({"name": "World"}))
    'Hello World!'
    >>> parser.parse(b"@ign-if:debug@on@ign-else@off@ign-endif@",
    ...              Variables({"debug": False}))
    b'off'
"""

from typing import AnyStr, List

from ..config import appsettings
from ..models.directives import DirectiveKind
from ..models.parser import DirectiveMatch, Literal, ParseContext, Token
from .comment import comments_resolve
from .conditional import blocks_build, conditionals_resolve
from .errors import ParseError, ParseErrorKind
from .filename import filename_parse
from .include import includes_resolve
from .log import LOG
from .scanner import directives_find, tokens_join, tokens_split
from .variables import Variables, var_resolve, varArgs_parse

ENCODING: str = "utf-8"
ENCODING_ERRORS: str = "surrogateescape"


def vars_resolve(tokens: List[Token], variables: Variables) -> List[Token]:
    """Replace every @ign-var@ directive with its rendered value"""
    resolved: List[Token] = []
    for token in tokens:
        if isinstance(token, DirectiveMatch) and token.kind is DirectiveKind.VAR:
            resolved.append(Literal(var_resolve(token, variables)))
        else:
            resolved.append(token)
    return resolved


class Parser:
    """
    Template directive engine

    Stateless: one instance can process any number of files, and every call
    gets its own ParseContext.

    Handles:
    - Variable interpolation with type annotations and defaults
    - Conditionals with lazy branch evaluation
    - Comment-embedded directives
    - Recursive includes with depth and cycle limits
    - Literal escapes
    - Directive substitution in file paths
    """

    def __init__(self, max_include_depth: int = 0):
        """
        Args:
            max_include_depth: Include ceiling for parse(); 0 takes the
                               configured default (IGN_MAX_INCLUDE_DEPTH)
        """
        self.max_include_depth = max_include_depth or appsettings.max_include_depth

    def parse(self, content: AnyStr, variables: Variables) -> AnyStr:
        """
        Process content with a fresh context

        Includes resolve against the working directory.

        Args:
            content: Template text (str or bytes)
            variables: Values for var/comment/if directives

        Returns:
            Processed text, same type as content

        Raises:
            ParseError: Any failure of any pass
        """
        context = ParseContext(variables=variables, max_include_depth=self.max_include_depth)
        return self.parse_withContext(content, context)

    def parse_withContext(self, content: AnyStr, context: ParseContext) -> AnyStr:
        """
        Process content with a caller-supplied context

        Used by the generator (template root and current file set) and by
        the include pass for included files.

        Args:
            content: Template text (str or bytes)
            context: Variables, include state and file attribution

        Returns:
            Processed text, same type as content

        Raises:
            ParseError: Any failure of any pass, attributed to
                        context.current_file when the pass did not name a file
        """
        if isinstance(content, bytes):
            text = content.decode(ENCODING, ENCODING_ERRORS)
            return self.text_process(text, context).encode(ENCODING, ENCODING_ERRORS)
        return self.text_process(content, context)

    def text_process(self, text: str, context: ParseContext) -> str:
        """Run every pass over decoded text"""
        try:
            tokens = tokens_split(text)
            if not any(isinstance(token, DirectiveMatch) for token in tokens):
                return tokens_join(tokens)

            LOG(f"Step 1: includes ({context.current_file or '<content>'})", level=3)
            tokens = includes_resolve(tokens, context, self.text_process)

            LOG("Step 2: conditionals", level=3)
            tokens = conditionals_resolve(tokens, context.variables)

            LOG("Step 3: comments", level=3)
            tokens = comments_resolve(tokens, context.variables)

            LOG("Step 4: variables", level=3)
            tokens = vars_resolve(tokens, context.variables)
        except ParseError as error:
            if not error.file:
                error.file = context.current_file
            raise

        return tokens_join(tokens)

    def validate(self, content: AnyStr) -> None:
        """
        Check syntax without resolving anything

        Reports unknown verbs, malformed var arguments, empty if, include
        and comment arguments, and unbalanced conditionals. Raw content is
        not inspected. No variables or files are needed.

        Raises:
            ParseError: First problem found, in source order
        """
        tokens = tokens_split(self.text_decode(content))

        for token in tokens:
            if not isinstance(token, DirectiveMatch):
                continue

            if token.kind is DirectiveKind.UNKNOWN:
                raise ParseError(ParseErrorKind.UNKNOWN_DIRECTIVE,
                                 f"unknown directive: @ign-{token.name}",
                                 line=token.line, directive=token.raw_text)
            if token.kind is DirectiveKind.VAR:
                varArgs_parse(token.args, token.raw_text, token.line)
            elif token.kind in (DirectiveKind.IF, DirectiveKind.INCLUDE, DirectiveKind.COMMENT):
                if not token.args.strip():
                    raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                                     f"@ign-{token.name}: requires an argument",
                                     line=token.line, directive=token.raw_text)

        blocks_build(tokens)

    def variables_extract(self, content: AnyStr) -> List[str]:
        """
        Names referenced by var, comment and if directives

        Distinct names in first-seen order. Malformed directives are
        skipped; use validate() to report them.

        Example:
            >>> Parser().variables_extract(
            ...     "@ign-if:tls@@ign-var:port:int=443@@ign-endif@ @ign-var:tls@")
            ['tls', 'port']
        """
        names: List[str] = []

        for match in directives_find(self.text_decode(content)):
            if match.kind is DirectiveKind.VAR:
                try:
                    name = varArgs_parse(match.args).name
                except ParseError:
                    continue
            elif match.kind in (DirectiveKind.IF, DirectiveKind.COMMENT):
                name = match.args.strip()
            else:
                continue

            if name and name not in names:
                names.append(name)

        return names

    def filename_parse(self, path: AnyStr, variables: Variables) -> AnyStr:
        """
        Resolve directives in a '/'-separated template path

        Only var and raw are honored. See lib.filename for the safety rules.

        Raises:
            ParseError: SECURITY_VIOLATION for unsafe results, or the
                        variable resolver's own kinds
        """
        text = self.text_decode(path)
        try:
            result = filename_parse(text, variables)
        except ParseError as error:
            if not error.file:
                error.file = text
            raise

        if isinstance(path, bytes):
            return result.encode(ENCODING, ENCODING_ERRORS)
        return result

    @staticmethod
    def text_decode(content: AnyStr) -> str:
        if isinstance(content, bytes):
            return content.decode(ENCODING, ENCODING_ERRORS)
        return content
