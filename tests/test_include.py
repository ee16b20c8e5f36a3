"""
Include directive tests

Tests path resolution, recursive processing, depth limits and cycle
detection, using real files under tmp_path.
"""

import os

import pytest

from ign.config import appsettings
from ign.lib.errors import ParseError, ParseErrorKind
from ign.lib.include import includePath_resolve
from ign.lib.parser import Parser
from ign.lib.variables import Variables
from ign.models.parser import ParseContext


def context_for(root, current_file="", max_include_depth=10, **values) -> ParseContext:
    return ParseContext(
        variables=Variables(values),
        template_root=str(root),
        current_file=current_file,
        max_include_depth=max_include_depth,
    )


def write(root, relative, text):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestPathResolve:
    """Test include path resolution rules"""

    def test_root_relative(self, tmp_path):
        """A leading '/' resolves against the template root"""
        context = context_for(tmp_path, "src/main.go")
        resolved = includePath_resolve("/shared/header.txt", context)
        assert resolved == os.path.join(str(tmp_path), "shared", "header.txt")

    def test_file_relative(self, tmp_path):
        """Other paths resolve against the including file"""
        context = context_for(tmp_path, "src/main.go")
        resolved = includePath_resolve("parts/footer.txt", context)
        assert resolved == os.path.join(str(tmp_path), "src", "parts", "footer.txt")

    def test_no_current_file_uses_root(self, tmp_path):
        """Without a current file paths resolve against the root"""
        resolved = includePath_resolve("a.txt", context_for(tmp_path))
        assert resolved == os.path.join(str(tmp_path), "a.txt")

    @pytest.mark.parametrize("path", ["../secret", "a/../../b", "/../etc/passwd", "a\\..\\b"])
    def test_parent_segment_rejected(self, tmp_path, path):
        """Paths with '..' segments are refused"""
        with pytest.raises(ValueError, match="contains '..'"):
            includePath_resolve(path, context_for(tmp_path))

    def test_dots_inside_names_allowed(self, tmp_path):
        """Dots inside a name are not a parent segment"""
        resolved = includePath_resolve("notes..txt", context_for(tmp_path))
        assert resolved.endswith("notes..txt")


class TestIncludeProcessing:
    """Test include expansion through the engine"""

    def test_simple_include(self, tmp_path):
        """The included file is processed and spliced in"""
        write(tmp_path, "header.txt", "// generated for @ign-var:name@")
        result = Parser().parse_withContext(
            "@ign-include:header.txt@\nbody", context_for(tmp_path, "main.go", name="api")
        )
        assert result == "// generated for api\nbody"

    def test_included_content_is_not_reprocessed(self, tmp_path):
        """Text produced by an include is final"""
        write(tmp_path, "part.txt", "@ign-raw:@ign-var:x@@")
        result = Parser().parse_withContext("@ign-include:part.txt@", context_for(tmp_path))
        assert result == "@ign-var:x@"

    def test_nested_relative_include(self, tmp_path):
        """Nested includes resolve against their own file"""
        write(tmp_path, "a/one.txt", "1 @ign-include:b/two.txt@")
        write(tmp_path, "a/b/two.txt", "2 @ign-include:/three.txt@")
        write(tmp_path, "three.txt", "3")
        result = Parser().parse_withContext("@ign-include:a/one.txt@", context_for(tmp_path))
        assert result == "1 2 3"

    def test_conditionals_in_included_file(self, tmp_path):
        """Included files get the full pipeline"""
        write(tmp_path, "opt.txt", "@ign-if:tls@https@ign-else@http@ign-endif@")
        result = Parser().parse_withContext("@ign-include:opt.txt@://", context_for(tmp_path, tls=True))
        assert result == "https://"

    def test_not_found(self, tmp_path):
        """A missing target is INCLUDE_NOT_FOUND with the cause chained"""
        with pytest.raises(ParseError) as exc_info:
            Parser().parse_withContext("@ign-include:missing.txt@", context_for(tmp_path, "main.go"))
        error = exc_info.value
        assert error.kind is ParseErrorKind.INCLUDE_NOT_FOUND
        assert error.file == "main.go"
        assert error.directive == "@ign-include:missing.txt@"
        assert isinstance(error.__cause__, OSError)

    def test_traversal_is_not_found(self, tmp_path):
        """A traversal attempt reports as not found"""
        with pytest.raises(ParseError) as exc_info:
            Parser().parse_withContext("@ign-include:../x@", context_for(tmp_path))
        assert exc_info.value.kind is ParseErrorKind.INCLUDE_NOT_FOUND

    def test_empty_path(self, tmp_path):
        """A blank include path is rejected"""
        with pytest.raises(ParseError, match="include path is empty") as exc_info:
            Parser().parse_withContext("@ign-include: @", context_for(tmp_path))
        assert exc_info.value.kind is ParseErrorKind.INVALID_DIRECTIVE_SYNTAX


class TestIncludeLimits:
    """Test cycle detection and the depth ceiling"""

    def test_circular_two_files(self, tmp_path):
        """A two-file cycle reports the whole chain"""
        write(tmp_path, "a.txt", "A @ign-include:b.txt@")
        write(tmp_path, "b.txt", "B @ign-include:a.txt@")
        content = (tmp_path / "a.txt").read_text()
        with pytest.raises(ParseError) as exc_info:
            Parser().parse_withContext(content, context_for(tmp_path, "a.txt"))
        error = exc_info.value
        assert error.kind is ParseErrorKind.CIRCULAR_INCLUDE
        assert "a.txt -> " in error.message
        assert error.message.count("a.txt") == 2
        assert "b.txt" in error.message

    def test_self_include(self, tmp_path):
        """A file including itself is a cycle"""
        write(tmp_path, "self.txt", "@ign-include:self.txt@")
        with pytest.raises(ParseError) as exc_info:
            Parser().parse_withContext("@ign-include:self.txt@", context_for(tmp_path, "self.txt"))
        assert exc_info.value.kind is ParseErrorKind.CIRCULAR_INCLUDE

    def test_same_file_twice_is_not_a_cycle(self, tmp_path):
        """Sibling includes of one file are allowed"""
        write(tmp_path, "x.txt", "x")
        result = Parser().parse_withContext("@ign-include:x.txt@@ign-include:x.txt@", context_for(tmp_path))
        assert result == "xx"

    def test_max_depth(self, tmp_path):
        """Nesting past the ceiling fails, within it succeeds"""
        for index in range(4):
            write(tmp_path, f"f{index}.txt", f"{index}@ign-include:f{index + 1}.txt@")
        write(tmp_path, "f4.txt", "end")

        with pytest.raises(ParseError) as exc_info:
            Parser().parse_withContext("@ign-include:f0.txt@", context_for(tmp_path, max_include_depth=3))
        assert exc_info.value.kind is ParseErrorKind.MAX_INCLUDE_DEPTH

        result = Parser().parse_withContext("@ign-include:f0.txt@", context_for(tmp_path, max_include_depth=5))
        assert result == "0123end"

    def test_parent_context_untouched(self, tmp_path):
        """Including does not change the caller's context"""
        write(tmp_path, "x.txt", "x")
        context = context_for(tmp_path, "main.txt")
        Parser().parse_withContext("@ign-include:x.txt@", context)
        assert context.include_depth == 0
        assert context.include_stack == []
        assert context.current_file == "main.txt"

    def test_default_ceiling_from_settings(self, tmp_path, monkeypatch):
        """A context built without a ceiling takes the configured one"""
        monkeypatch.setattr(appsettings, "max_include_depth", 2)
        for index in range(3):
            write(tmp_path, f"f{index}.txt", f"{index}@ign-include:f{index + 1}.txt@")
        write(tmp_path, "f3.txt", "end")
        context = ParseContext(variables=Variables(), template_root=str(tmp_path))

        assert context.max_include_depth == 2
        with pytest.raises(ParseError) as exc_info:
            Parser().parse_withContext("@ign-include:f0.txt@", context)
        assert exc_info.value.kind is ParseErrorKind.MAX_INCLUDE_DEPTH
