"""
Variable store and @ign-var@ resolution

Holds the name -> value mapping a generation run works with, renders values
for interpolation, and resolves the extended variable directive grammar:

    @ign-var:NAME@                 required, type not checked
    @ign-var:NAME:TYPE@            required, value must be TYPE
    @ign-var:NAME=DEFAULT@         optional, DEFAULT when NAME is absent
    @ign-var:NAME:TYPE=DEFAULT@    optional, DEFAULT coerced to TYPE

Values are str, int, float or bool. Floats arrive from JSON sources and are
treated as integers when whole. bool is never accepted where int is
requested, nor int where bool is requested.

Also builds a store from a template's declared variable definitions, and
loads and saves ign-var.json files.

Example:
    >>> store = Variables({"port": 8080.0, "debug": True})
    >>> store.get_int("port"), value_render(store.get("port"))
    (8080, '8080')
    >>> varArgs_parse("port:int=9000")
    VarSpec(name='port', type='int', default=9000, has_default=True)
"""

import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..models.directives import VAR_TYPES
from ..models.parser import DirectiveMatch
from ..models.template import VarDef
from .errors import ParseError, ParseErrorKind, VariableError
from .log import LOG

Value = Union[str, int, float, bool]

BOOL_TEXT: Dict[str, bool] = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}

INT_PATTERN = re.compile(r'[+-]?\d+')
FILE_PREFIX: str = "@file:"
MAX_BACKUPS: int = 100


def valueType_name(value: Any) -> str:
    """Type name of a value as used in messages and annotations"""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def int_is(value: Any) -> bool:
    """True for ints and whole floats (never for bools)"""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def value_render(value: Value) -> str:
    """
    Render a value for interpolation

    Strings as-is, booleans as true/false, ints and whole floats as decimal
    integers, other floats with the fewest digits that round-trip.

    Example:
        >>> [value_render(v) for v in ("x", True, 42, 3.0, 0.25, 1e-7)]
        ['x', 'true', '42', '3', '0.25', '0.0000001']
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return repr(value)
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), 'f')
    return str(value)


class Variables:
    """
    Name -> value store with typed accessors

    Read-only while a parse runs, so one store can be shared by every file
    of a generation run.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Value] = {}
        for name, value in (data or {}).items():
            self.set(name, value)

    def get(self, name: str) -> Optional[Value]:
        """Point lookup, None when the variable is absent"""
        return self.data.get(name)

    def get_string(self, name: str) -> str:
        value = self.value_require(name)
        if not isinstance(value, str):
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"variable {name} is not a string (got {valueType_name(value)})",
            )
        return value

    def get_int(self, name: str) -> int:
        value = self.value_require(name)
        if not int_is(value):
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"variable {name} is not an integer (got {valueType_name(value)})",
            )
        return int(value)

    def get_bool(self, name: str) -> bool:
        value = self.value_require(name)
        if not isinstance(value, bool):
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"variable {name} is not a boolean (got {valueType_name(value)})",
            )
        return value

    def set(self, name: str, value: Value) -> None:
        if not isinstance(value, (str, int, float, bool)):
            raise TypeError(
                f"variable {name}: unsupported value type {type(value).__name__}"
            )
        self.data[name] = value

    def all(self) -> Dict[str, Value]:
        """Copy of every variable"""
        return dict(self.data)

    def value_require(self, name: str) -> Value:
        if name not in self.data:
            raise ParseError(ParseErrorKind.MISSING_VARIABLE, f"variable not found: {name}")
        return self.data[name]

    def __contains__(self, name: object) -> bool:
        return name in self.data

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)


@dataclass
class VarSpec:
    """
    Parsed argument of an @ign-var@ directive

    Attributes:
        name: Variable name
        type: Annotation ("" when absent)
        default: Default value (already coerced to type when both are given)
        has_default: Whether "=DEFAULT" was present
    """
    name: str
    type: str = ""
    default: Optional[Value] = None
    has_default: bool = False


def default_parse(text: str) -> Value:
    """
    Interpret a default literal

    Exactly true/false -> bool, whole number -> int, anything else -> str.
    """
    text = text.strip()
    if text == "true":
        return True
    if text == "false":
        return False
    if INT_PATTERN.fullmatch(text):
        return int(text)
    return text


def value_coerce(value: Value, var_type: str) -> Value:
    """
    Convert a default literal to an annotated type

    Raises:
        ValueError: If value cannot represent var_type
    """
    if var_type == "string":
        return value if isinstance(value, str) else value_render(value)

    if var_type == "int":
        if int_is(value):
            return int(value)
        if isinstance(value, str) and INT_PATTERN.fullmatch(value.strip()):
            return int(value)
        raise ValueError(f"cannot coerce {valueType_name(value)} {value!r} to int")

    if var_type == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value in BOOL_TEXT:
            return BOOL_TEXT[value]
        raise ValueError(f"cannot coerce {valueType_name(value)} {value!r} to bool")

    raise ValueError(f"unknown type: {var_type}")


def varArgs_parse(args: str, directive: str = "", line: int = 0) -> VarSpec:
    """
    Parse NAME[:TYPE][=DEFAULT]

    The default is split off at the first '=', the annotation at the first
    ':' of what remains.

    Raises:
        ParseError: INVALID_DIRECTIVE_SYNTAX for an empty name or unknown type,
                    TYPE_MISMATCH when the default cannot take the annotated type
    """
    args = args.strip()
    if not args:
        raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                         "variable name is empty", line=line, directive=directive)

    spec = VarSpec(name="")
    if '=' in args:
        args, default_text = args.split('=', 1)
        spec.default = default_parse(default_text)
        spec.has_default = True

    if ':' in args:
        name, var_type = args.split(':', 1)
        spec.name = name.strip()
        spec.type = var_type.strip()
        if spec.type and spec.type not in VAR_TYPES:
            raise ParseError(
                ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                f"invalid type {spec.type!r} (must be string, int, or bool)",
                line=line,
                directive=directive,
            )
    else:
        spec.name = args.strip()

    if not spec.name:
        raise ParseError(ParseErrorKind.INVALID_DIRECTIVE_SYNTAX,
                         "variable name is empty", line=line, directive=directive)

    if spec.type and spec.has_default:
        try:
            spec.default = value_coerce(spec.default, spec.type)
        except ValueError as exc:
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"default value type mismatch for {spec.name}: {exc}",
                line=line,
                directive=directive,
            ) from exc

    return spec


def valueType_check(
    name: str, value: Value, var_type: str, directive: str = "", line: int = 0
) -> None:
    """Raise TYPE_MISMATCH unless value is of the annotated type"""
    if var_type == "int":
        matches = int_is(value)
    elif var_type == "bool":
        matches = isinstance(value, bool)
    else:
        matches = isinstance(value, str)

    if not matches:
        raise ParseError(
            ParseErrorKind.TYPE_MISMATCH,
            f"variable {name}: type mismatch, expected {var_type} but got {valueType_name(value)}",
            line=line,
            directive=directive,
        )


def var_lookup(match: DirectiveMatch, variables: Variables) -> Value:
    """
    Resolve an @ign-var@ directive to its (unrendered) value

    Raises:
        ParseError: MISSING_VARIABLE, TYPE_MISMATCH or INVALID_DIRECTIVE_SYNTAX
    """
    spec = varArgs_parse(match.args, match.raw_text, match.line)

    if spec.name in variables:
        value = variables.get(spec.name)
        if spec.type:
            valueType_check(spec.name, value, spec.type, match.raw_text, match.line)
    elif spec.has_default:
        LOG(f"Using default for {spec.name}: {spec.default!r}", level=3)
        value = spec.default
    else:
        raise ParseError(
            ParseErrorKind.MISSING_VARIABLE,
            f"required variable not found: {spec.name}",
            line=match.line,
            directive=match.raw_text,
        )

    return value


def var_resolve(match: DirectiveMatch, variables: Variables) -> str:
    """Resolve an @ign-var@ directive to its rendered text"""
    return value_render(var_lookup(match, variables))


def value_fromText(text: str, var_type: Optional[str] = None) -> Value:
    """
    Convert command-line text to a value

    With a declared type the text is converted to it (ValueError if it
    cannot be); without one it is interpreted like a default literal.
    """
    if var_type is None:
        return default_parse(text)
    if var_type == "number":
        number = float(text)
        return int(number) if INT_PATTERN.fullmatch(text.strip()) else number
    return value_coerce(text, var_type)


def definition_check(name: str, definition: VarDef, value: Any) -> Optional[str]:
    """Problem with value under definition, None when it satisfies it"""
    if definition.required and isinstance(value, str) and not value.strip():
        return f"{name}: required value is empty"

    if definition.type == "string" and not isinstance(value, str):
        return f"{name}: expected string, got {valueType_name(value)}"
    if definition.type == "int" and not int_is(value):
        return f"{name}: expected int, got {valueType_name(value)}"
    if definition.type == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
        return f"{name}: expected number, got {valueType_name(value)}"
    if definition.type == "bool" and not isinstance(value, bool):
        return f"{name}: expected bool, got {valueType_name(value)}"

    if definition.pattern and isinstance(value, str):
        if not re.fullmatch(definition.pattern, value):
            return f"{name}: {value!r} does not match pattern {definition.pattern!r}"

    if definition.type == "int":
        if definition.min is not None and value < definition.min:
            return f"{name}: {value_render(value)} is below minimum {definition.min}"
        if definition.max is not None and value > definition.max:
            return f"{name}: {value_render(value)} is above maximum {definition.max}"

    return None


def variables_fromDefinitions(
    definitions: Dict[str, VarDef], values: Dict[str, Any]
) -> Variables:
    """
    Build the store for a generation run

    Supplied values win over declared defaults. Values for names the
    template does not declare are kept as-is.

    Args:
        definitions: Declared variables (ign-template.json "variables")
        values: Operator-supplied values

    Returns:
        Variables store

    Raises:
        VariableError: Listing every missing or invalid variable
    """
    merged: Dict[str, Any] = {}
    problems: List[str] = []

    for name, definition in definitions.items():
        if name in values:
            value = values[name]
        elif definition.default is not None:
            value = definition.default
        else:
            if definition.required:
                problems.append(f"{name}: required variable not set")
            continue

        problem = definition_check(name, definition, value)
        if problem:
            problems.append(problem)
            continue
        merged[name] = value

    for name, value in values.items():
        if name not in definitions:
            merged[name] = value

    if problems:
        raise VariableError("invalid template variables", problems)

    try:
        return Variables(merged)
    except TypeError as exc:
        raise VariableError(str(exc)) from exc


def variables_loadFile(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load values from an ign-var.json file

    The file holds {"variables": {...}}. A string value "@file:NAME" is
    replaced by the text of NAME, resolved against the file's directory.

    Raises:
        VariableError: Unreadable or malformed file, or a missing @file: target
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise VariableError(f"failed to read variables file {path}") from exc

    raw = document.get("variables") if isinstance(document, dict) else None
    if not isinstance(raw, dict):
        raise VariableError(f"{path}: 'variables' must be an object")

    values: Dict[str, Any] = {}
    for name, value in raw.items():
        if isinstance(value, str) and value.startswith(FILE_PREFIX):
            filename = value[len(FILE_PREFIX):].strip()
            if not filename:
                raise VariableError(f"variable {name}: {FILE_PREFIX} prefix without filename")
            try:
                value = (path.parent / filename).read_text(encoding="utf-8")
            except OSError as exc:
                raise VariableError(f"variable {name}: failed to read {FILE_PREFIX}{filename}") from exc
            LOG(f"Variable {name}: loaded {len(value)} characters from {filename}", level=2)
        values[name] = value

    return values


def backupPath_find(path: Path) -> Path:
    """
    First free NAME.bkN sibling of path, N counting from 1

    Raises:
        VariableError: All MAX_BACKUPS names are taken
    """
    for number in range(1, MAX_BACKUPS + 1):
        candidate = path.with_name(f"{path.name}.bk{number}")
        if not candidate.exists():
            return candidate
    raise VariableError(f"too many backups of {path} (max {MAX_BACKUPS}), please clean up old ones")


def variables_saveFile(path: Union[str, Path], values: Dict[str, Any]) -> Optional[Path]:
    """
    Write values to an ign-var.json file as {"variables": {...}}

    An existing file is first renamed to its next free .bkN backup.

    Returns:
        Path of the backup, or None when there was nothing to back up

    Raises:
        VariableError: The backup or the write failed
    """
    path = Path(path)
    backup: Optional[Path] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            backup = backupPath_find(path)
            LOG(f"Backing up {path.name} to {backup.name}", level=2)
            path.rename(backup)
        path.write_text(json.dumps({"variables": values}, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise VariableError(f"failed to save variables file {path}") from exc

    LOG(f"Saved {len(values)} variables to {path}", level=2)
    return backup
