"""
Template manifest and file models

ign-template.json is validated with pydantic so a malformed manifest fails
once, at load time, with field-level messages. Runtime containers (files,
loaded templates) are plain dataclasses.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


VarType = Literal["string", "int", "number", "bool"]


class VarDef(BaseModel):
    """
    Declared template variable

    Attributes:
        type: Value kind (number accepts int or float values)
        description: Prompt / documentation text
        required: Value must be supplied (blank strings count as missing)
        default: Used when no value is supplied
        example: Documentation only
        pattern: Regex the whole string value must match (strings only)
        min: Lower bound (ints only)
        max: Upper bound (ints only)
    """
    type: VarType = "string"
    description: str = ""
    required: bool = False
    default: Optional[Any] = None
    example: Optional[Any] = None
    pattern: Optional[str] = None
    min: Optional[int] = None
    max: Optional[int] = None


class TemplateSettings(BaseModel):
    """Generation settings declared by a template"""
    preserve_executable: bool = False
    ignore_patterns: List[str] = Field(default_factory=list)
    binary_extensions: List[str] = Field(default_factory=list)
    include_dotfiles: bool = False
    max_include_depth: Optional[int] = Field(default=None, ge=1)


class TemplateManifest(BaseModel):
    """Contents of ign-template.json"""
    name: str
    version: str
    description: str = ""
    author: str = ""
    repository: str = ""
    license: str = ""
    tags: List[str] = Field(default_factory=list)
    variables: Dict[str, VarDef] = Field(default_factory=dict)
    settings: TemplateSettings = Field(default_factory=TemplateSettings)


@dataclass
class TemplateFile:
    """
    One file of a template

    Attributes:
        path: '/'-separated path relative to the template root
        content: Raw file bytes
        mode: Permission bits
        is_binary: Copy verbatim, never run through the directive engine
    """
    path: str
    content: bytes
    mode: int = 0o644
    is_binary: bool = False


@dataclass
class Template:
    """A template loaded from a local directory"""
    root: Path
    manifest: TemplateManifest
    files: List[TemplateFile] = field(default_factory=list)
