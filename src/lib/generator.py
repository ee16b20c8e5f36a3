"""
Project generator

Drives a loaded template through the directive engine into an output
directory. Each file is handled on its own: its path goes through the
filename resolver, its content through the content pipeline (binary files
are copied verbatim), and the result is written unless the target exists
and overwriting is off.

A failure on one file is recorded in GenerateResult.errors and generation
moves on to the next file.
"""

import contextlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from ..config import appsettings
from ..models.parser import ParseContext
from ..models.template import Template, TemplateFile
from .errors import GeneratorError, GeneratorErrorKind, ParseError
from .log import LOG
from .parser import Parser
from .template import file_ignored
from .variables import Variables


@dataclass
class DryRunFile:
    """
    What generation would do with one file

    Attributes:
        path: Output path
        content: Processed content (None when the file would be skipped)
        exists: Output path already exists
        would_overwrite: Existing file would be replaced
        would_skip: Existing file would be left alone
    """
    path: str
    content: Optional[bytes] = None
    exists: bool = False
    would_overwrite: bool = False
    would_skip: bool = False


@dataclass
class GenerateResult:
    """
    Outcome of one generation run

    Attributes:
        files_created: Files written that did not exist
        files_skipped: Existing files left alone
        files_overwritten: Existing files replaced
        files: Output paths of every file considered (ignored files excluded)
        errors: Per-file failures
        dry_run_files: Previews, filled only in dry-run mode
    """
    files_created: int = 0
    files_skipped: int = 0
    files_overwritten: int = 0
    files: List[str] = field(default_factory=list)
    errors: List[GeneratorError] = field(default_factory=list)
    dry_run_files: List[DryRunFile] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Generator:
    """Generates projects from loaded templates"""

    def __init__(self, parser: Optional[Parser] = None):
        self.parser = parser or Parser()

    def generate(
        self,
        template: Template,
        variables: Variables,
        output_dir: Union[str, Path],
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> GenerateResult:
        """
        Generate every template file into output_dir

        Args:
            template: Loaded template
            variables: Resolved variable store
            output_dir: Destination directory (created when missing)
            overwrite: Replace files that already exist
            dry_run: Compute everything, write nothing

        Returns:
            GenerateResult with counts, paths and per-file errors

        Raises:
            GeneratorError: WRITE_FAILED when output_dir cannot be created
        """
        output_dir = Path(output_dir)
        settings = template.manifest.settings
        result = GenerateResult()

        if not dry_run:
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise GeneratorError(GeneratorErrorKind.WRITE_FAILED,
                                     f"failed to create output directory {output_dir}") from exc

        LOG(f"Generating {len(template.files)} files into {output_dir}"
            f"{' (dry run)' if dry_run else ''}", level=1)

        for file in template.files:
            if file_ignored(file.path, settings.ignore_patterns):
                LOG(f"Ignoring {file.path}", level=2)
                continue

            try:
                self.file_generate(template, file, variables, output_dir, overwrite, dry_run, result)
            except GeneratorError as error:
                LOG(f"Failed {file.path}: {error}", level=2)
                result.errors.append(error)

        LOG(f"Generation complete: created={result.files_created}, "
            f"overwritten={result.files_overwritten}, skipped={result.files_skipped}, "
            f"errors={len(result.errors)}", level=2)
        return result

    def file_generate(
        self,
        template: Template,
        file: TemplateFile,
        variables: Variables,
        output_dir: Path,
        overwrite: bool,
        dry_run: bool,
        result: GenerateResult,
    ) -> None:
        """
        Generate one file, updating result in place

        Raises:
            GeneratorError: PATH_ERROR, PROCESS_FAILED or WRITE_FAILED
        """
        try:
            output_path = output_dir / self.parser.filename_parse(file.path, variables)
        except ParseError as exc:
            raise GeneratorError(GeneratorErrorKind.PATH_ERROR,
                                 "failed to process filename", file=file.path) from exc

        result.files.append(str(output_path))
        exists = output_path.exists()

        if exists and not overwrite:
            LOG(f"Skipping existing {output_path}", level=2)
            result.files_skipped += 1
            if dry_run:
                result.dry_run_files.append(DryRunFile(path=str(output_path), exists=True, would_skip=True))
            return

        content = self.content_process(template, file, variables)

        if dry_run:
            result.dry_run_files.append(DryRunFile(
                path=str(output_path),
                content=content,
                exists=exists,
                would_overwrite=exists,
            ))
        else:
            LOG(f"{'Overwriting' if exists else 'Creating'} {output_path} ({len(content)} bytes)", level=2)
            self.file_write(output_path, content, file, template.manifest.settings.preserve_executable)

        if exists:
            result.files_overwritten += 1
        else:
            result.files_created += 1

    def content_process(self, template: Template, file: TemplateFile, variables: Variables) -> bytes:
        """
        Run one file's content through the engine

        Raises:
            GeneratorError: PROCESS_FAILED wrapping the ParseError
        """
        if file.is_binary:
            LOG(f"Copying binary {file.path} verbatim", level=3)
            return file.content

        context = ParseContext(
            variables=variables,
            template_root=str(template.root),
            current_file=file.path,
            max_include_depth=template.manifest.settings.max_include_depth or appsettings.max_include_depth,
        )
        try:
            return self.parser.parse_withContext(file.content, context)
        except ParseError as exc:
            raise GeneratorError(GeneratorErrorKind.PROCESS_FAILED,
                                 "failed to process content", file=file.path) from exc

    @staticmethod
    def file_write(path: Path, content: bytes, file: TemplateFile, preserve_executable: bool) -> None:
        """
        Write content through a temporary file then move it into place

        Permission bits are the template file's (owner read/write always
        kept) when preserve_executable is set, 0o644 otherwise.

        Raises:
            GeneratorError: WRITE_FAILED
        """
        mode = (file.mode | 0o600) if preserve_executable else 0o644
        temp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp.write_bytes(content)
            os.chmod(temp, mode)
            os.replace(temp, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                temp.unlink(missing_ok=True)
            raise GeneratorError(GeneratorErrorKind.WRITE_FAILED,
                                 f"failed to write {path}", file=file.path) from exc
