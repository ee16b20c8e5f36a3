"""
Comment directive tests

Tests @ign-comment@ lines inside host-language comment markers.
"""

import pytest

from ign.lib.comment import comments_resolve, lines_split
from ign.lib.errors import ParseError, ParseErrorKind
from ign.lib.scanner import tokens_join, tokens_split
from ign.lib.variables import Variables
from ign.models.parser import Literal


def resolve(text: str, **values) -> str:
    return tokens_join(comments_resolve(tokens_split(text), Variables(values)))


class TestMarkers:
    """Test each recognized comment form"""

    @pytest.mark.parametrize("line", [
        "@ign-comment:code@",
        "// @ign-comment:code@",
        "# @ign-comment:code@",
        "-- @ign-comment:code@",
        "/* @ign-comment:code@ */",
        "<!-- @ign-comment:code@ -->",
        "//@ign-comment:code@",
    ])
    def test_marker_replaced(self, line):
        """Each supported comment marker is replaced by the value"""
        assert resolve(line, code="import os") == "import os"

    def test_indentation_kept(self):
        """Leading spaces survive the replacement"""
        text = "def f():\n    # @ign-comment:body@\n"
        assert resolve(text, body="return 1") == "def f():\n    return 1\n"

    def test_tab_indentation_kept(self):
        """Leading tabs survive the replacement"""
        assert resolve("\t// @ign-comment:x@", x="y") == "\ty"

    def test_crlf_line_ending_kept(self):
        """CRLF line endings are kept"""
        assert resolve("a\r\n// @ign-comment:x@\r\nb", x="y") == "a\r\ny\r\nb"

    def test_other_lines_untouched(self):
        """Lines without the directive keep their comments"""
        text = "keep // this\n# @ign-comment:x@\nkeep # that"
        assert resolve(text, x="1") == "keep // this\n1\nkeep # that"

    def test_non_string_value_rendered(self):
        """Non-string values are rendered as text"""
        assert resolve("# @ign-comment:port@", port=8080) == "8080"


class TestErrors:
    """Test rejected comment lines"""

    @pytest.mark.parametrize("line", [
        "code(); // @ign-comment:x@",
        "/* @ign-comment:x@",
        "<!-- @ign-comment:x@ */",
        "# @ign-comment:x@ trailing",
    ])
    def test_surrounding_text(self, line):
        """Text next to the directive is rejected"""
        with pytest.raises(ParseError, match="alone on its line") as exc_info:
            resolve(line, x="y")
        assert exc_info.value.kind is ParseErrorKind.INVALID_DIRECTIVE_SYNTAX

    def test_two_on_one_line(self):
        """Only one comment directive is allowed per line"""
        with pytest.raises(ParseError, match="more than one"):
            resolve("@ign-comment:a@ @ign-comment:b@", a="1", b="2")

    def test_missing_variable(self):
        """A missing value is reported with its line"""
        with pytest.raises(ParseError) as exc_info:
            resolve("\n\n// @ign-comment:x@")
        assert exc_info.value.kind is ParseErrorKind.MISSING_VARIABLE
        assert exc_info.value.line == 3

    def test_empty_name(self):
        """A blank variable name is rejected"""
        with pytest.raises(ParseError, match="variable name is empty"):
            resolve("# @ign-comment: @")


class TestLinesSplit:
    """Test splitting tokens at newlines"""

    def test_literal_stays_literal(self):
        """Literal tokens split across lines stay Literal"""
        lines = lines_split(["a\n", Literal("b\nc"), "d"])
        assert lines == [["a"], [Literal("b")], [Literal("c"), "d"]]

    def test_no_comment_directive_is_passthrough(self):
        """Token lists without comment directives are returned as-is"""
        tokens = tokens_split("x @ign-var:y@\nz")
        assert comments_resolve(tokens, Variables()) is tokens
