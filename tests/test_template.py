"""
Template loader tests

Tests manifest validation, the file walk, special files, dotfiles, binary
detection and ignore patterns.
"""

import json
import os

import pytest

from ign.lib.errors import GeneratorError, GeneratorErrorKind
from ign.lib.template import binary_is, file_ignored, pattern_matches, template_load


def manifest_write(root, **extra):
    manifest = {"name": "demo", "version": "1.0.0", **extra}
    (root / "ign-template.json").write_text(json.dumps(manifest))


def write(root, relative, data):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, bytes):
        path.write_bytes(data)
    else:
        path.write_text(data)
    return path


class TestManifest:
    """Test ign-template.json handling"""

    def test_load_manifest(self, tmp_path):
        """Manifest fields and variable definitions are parsed"""
        manifest_write(tmp_path, variables={
            "app_name": {"type": "string", "required": True},
            "port": {"type": "int", "default": 8080, "min": 1},
        })
        template = template_load(tmp_path)
        assert template.manifest.name == "demo"
        assert template.manifest.variables["port"].default == 8080
        assert template.manifest.variables["app_name"].required is True
        assert template.root == tmp_path.resolve()

    def test_missing_manifest(self, tmp_path):
        """A directory without a manifest is TEMPLATE_INVALID"""
        with pytest.raises(GeneratorError) as exc_info:
            template_load(tmp_path)
        assert exc_info.value.kind is GeneratorErrorKind.TEMPLATE_INVALID

    def test_invalid_json(self, tmp_path):
        """Unparseable JSON is rejected"""
        (tmp_path / "ign-template.json").write_text("{")
        with pytest.raises(GeneratorError, match="invalid ign-template.json"):
            template_load(tmp_path)

    def test_bad_variable_type(self, tmp_path):
        """Unsupported variable types are rejected"""
        manifest_write(tmp_path, variables={"x": {"type": "list"}})
        with pytest.raises(GeneratorError):
            template_load(tmp_path)

    def test_blank_name(self, tmp_path):
        """Blank name or version is rejected"""
        (tmp_path / "ign-template.json").write_text(json.dumps({"name": " ", "version": "1"}))
        with pytest.raises(GeneratorError, match="non-empty name and version"):
            template_load(tmp_path)

    def test_not_a_directory(self, tmp_path):
        """A missing template root is rejected"""
        with pytest.raises(GeneratorError, match="not a directory"):
            template_load(tmp_path / "nope")


class TestFiles:
    """Test the file walk"""

    def test_files_sorted_and_relative(self, tmp_path):
        """Files are listed sorted with '/'-separated relative paths"""
        manifest_write(tmp_path)
        write(tmp_path, "b.txt", "b")
        write(tmp_path, "a/@ign-var:name@.go", "package main")
        paths = [f.path for f in template_load(tmp_path).files]
        assert paths == ["a/@ign-var:name@.go", "b.txt"]

    def test_special_files_excluded(self, tmp_path):
        """Manifest and .ign files are never template files"""
        manifest_write(tmp_path, settings={"include_dotfiles": True})
        write(tmp_path, ".ign/ign-var.json", "{}")
        write(tmp_path, "sub/ign-template.json", "{}")
        write(tmp_path, "keep.txt", "k")
        assert [f.path for f in template_load(tmp_path).files] == ["keep.txt"]

    def test_dotfiles_skipped_by_default(self, tmp_path):
        """Dotfiles and dot directories are skipped"""
        manifest_write(tmp_path)
        write(tmp_path, ".gitignore", "*.o")
        write(tmp_path, ".github/workflows/ci.yml", "on: push")
        write(tmp_path, "main.c", "int main;")
        assert [f.path for f in template_load(tmp_path).files] == ["main.c"]

    def test_dotfiles_included(self, tmp_path):
        """include_dotfiles keeps them"""
        manifest_write(tmp_path, settings={"include_dotfiles": True})
        write(tmp_path, ".gitignore", "*.o")
        assert [f.path for f in template_load(tmp_path).files] == [".gitignore"]

    def test_mode_recorded(self, tmp_path):
        """Permission bits are recorded"""
        manifest_write(tmp_path)
        script = write(tmp_path, "run.sh", "#!/bin/sh\n")
        os.chmod(script, 0o755)
        assert template_load(tmp_path).files[0].mode == 0o755

    def test_binary_flags(self, tmp_path):
        """Extensions, configured extensions and NUL bytes mark binary"""
        manifest_write(tmp_path, settings={"binary_extensions": [".dat"]})
        write(tmp_path, "logo.PNG", "not really an image")
        write(tmp_path, "blob.dat", "text")
        write(tmp_path, "nul.bin2", b"abc\x00def")
        write(tmp_path, "text.md", "# @ign-var:name@")
        flags = {f.path: f.is_binary for f in template_load(tmp_path).files}
        assert flags == {"blob.dat": True, "logo.PNG": True, "nul.bin2": True, "text.md": False}


class TestMatching:
    """Test binary detection and ignore patterns"""

    def test_nul_beyond_sniff_window(self):
        """Only the leading bytes are sniffed for NUL"""
        content = b"a" * 600 + b"\x00"
        assert binary_is("data.raw", content, []) is False

    @pytest.mark.parametrize("path,pattern", [
        ("build/out.o", "*.o"),
        ("build/out.o", "build/*"),
        ("notes.tmp", "*.tmp"),
        ("deep/er/x.log", "x.log"),
    ])
    def test_pattern_matches(self, path, pattern):
        """Patterns match full paths or basenames"""
        assert pattern_matches(path, pattern)

    def test_pattern_no_match(self):
        """Non-matching patterns do not ignore"""
        assert not pattern_matches("src/main.go", "*.py")

    def test_special_files_always_ignored(self):
        """Special files are ignored with no patterns"""
        assert file_ignored("ign-template.json", [])
        assert file_ignored(".ign/config.json", [])
        assert not file_ignored("src/main.go", [])
