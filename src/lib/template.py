"""
Local template loader

A template is a directory holding ign-template.json plus the files to
generate. Loading reads the manifest, walks the tree and captures every
generatable file with its bytes, permission bits and a binary flag.

Never loaded:
    - ign-template.json itself, at any depth
    - anything under .ign/
    - dotfiles and dot-directories, unless settings.include_dotfiles
    - symlinks and other non-regular files

Example:
    >>> template = template_load("templates/go-service")
    >>> [f.path for f in template.files]
    ['README.md', 'cmd/@ign-var:app_name@/main.go', 'go.mod']
"""

import fnmatch
import posixpath
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import ValidationError

from ..config import appsettings
from ..models.template import Template, TemplateFile, TemplateManifest
from .errors import GeneratorError, GeneratorErrorKind
from .log import LOG


def pattern_matches(path: str, pattern: str) -> bool:
    """
    Glob-match a template path against an ignore pattern

    Tried on the full '/'-separated path, then on the basename, so "*.tmp"
    catches "a/b/c.tmp".
    """
    path = path.replace("\\", "/")
    pattern = pattern.replace("\\", "/")
    if fnmatch.fnmatchcase(path, pattern):
        return True
    return fnmatch.fnmatchcase(posixpath.basename(path), pattern)


def file_ignored(path: str, patterns: Iterable[str]) -> bool:
    """True for special files and paths matching any ignore pattern"""
    if appsettings.specialFile_is(path):
        return True
    return any(pattern_matches(path, pattern) for pattern in patterns)


def binary_is(path: str, content: bytes, extensions: Iterable[str]) -> bool:
    """
    Decide whether a file is copied verbatim

    Binary when the extension is listed (case-insensitive) or a NUL byte
    appears within the first appsettings.binary_sniff_bytes bytes.
    """
    suffix = posixpath.splitext(path)[1].lower()
    if suffix and suffix in {ext.lower() for ext in extensions}:
        return True
    return b"\x00" in content[:appsettings.binary_sniff_bytes]


def manifest_read(root: Path) -> TemplateManifest:
    """
    Read and validate ign-template.json

    Raises:
        GeneratorError: TEMPLATE_INVALID when missing, unreadable or invalid
    """
    manifest_path = root / appsettings.template_config_file
    try:
        data = manifest_path.read_bytes()
    except OSError as exc:
        raise GeneratorError(
            GeneratorErrorKind.TEMPLATE_INVALID,
            f"{appsettings.template_config_file} not found in template root {root}",
        ) from exc

    try:
        manifest = TemplateManifest.model_validate_json(data)
    except ValidationError as exc:
        raise GeneratorError(
            GeneratorErrorKind.TEMPLATE_INVALID,
            f"invalid {appsettings.template_config_file}",
            file=appsettings.template_config_file,
        ) from exc

    if not manifest.name.strip() or not manifest.version.strip():
        raise GeneratorError(
            GeneratorErrorKind.TEMPLATE_INVALID,
            f"{appsettings.template_config_file} requires a non-empty name and version",
            file=appsettings.template_config_file,
        )
    return manifest


def files_collect(root: Path, manifest: TemplateManifest) -> List[TemplateFile]:
    """Walk root and capture every generatable file, sorted by path"""
    settings = manifest.settings
    extensions = [*appsettings.binary_extensions, *settings.binary_extensions]
    files: List[TemplateFile] = []

    for entry in sorted(root.rglob("*")):
        relative = entry.relative_to(root).as_posix()

        if entry.is_symlink() or not entry.is_file():
            continue
        if appsettings.specialFile_is(relative):
            continue
        if not settings.include_dotfiles and any(part.startswith(".") for part in relative.split("/")):
            LOG(f"Skipping dotfile {relative}", level=3)
            continue

        try:
            content = entry.read_bytes()
            mode = entry.stat().st_mode & 0o777
        except OSError as exc:
            raise GeneratorError(GeneratorErrorKind.TEMPLATE_INVALID,
                                 "failed to read template file", file=relative) from exc

        files.append(TemplateFile(
            path=relative,
            content=content,
            mode=mode,
            is_binary=binary_is(relative, content, extensions),
        ))

    return files


def template_load(root: Union[str, Path]) -> Template:
    """
    Load a template from a local directory

    Args:
        root: Template directory

    Returns:
        Template with its manifest and files

    Raises:
        GeneratorError: TEMPLATE_INVALID when root is not a directory or the
                        manifest is missing or invalid
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise GeneratorError(GeneratorErrorKind.TEMPLATE_INVALID,
                             f"template path is not a directory: {root}")

    manifest = manifest_read(root)
    LOG(f"Template {manifest.name} {manifest.version}", level=2)

    files = files_collect(root, manifest)
    LOG(f"Collected {len(files)} template files "
        f"({sum(f.is_binary for f in files)} binary)", level=2)

    return Template(root=root, manifest=manifest, files=files)
