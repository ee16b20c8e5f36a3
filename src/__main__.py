#!/usr/bin/env python3
"""
ign - project scaffolding from directive templates

Generates a project from a template directory whose files (and file paths)
carry @ign-<verb>@ directives.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Directives:
    @ign-var:NAME[:TYPE][=DEFAULT]@   variable interpolation
    @ign-if:NAME@ ... @ign-else@ ... @ign-endif@
    @ign-comment:NAME@                line hidden in a host-language comment
    @ign-include:PATH@                splice another template file
    @ign-raw:TEXT@                    literal escape

Usage:
    ign templatedir/ outputdir/ [--varsFile ign-var.json] [--set NAME=VALUE ...]

Examples:
    # Generate with values from a variables file
    ign templates/go-service myservice/ --varsFile ign-var.json

    # Override single values, preview only
    ign templates/go-service myservice/ --set app_name=api --set port=9000 --dryRun

    # Regenerate over an existing project, verbose
    ign templates/go-service myservice/ --overwrite -vv
"""

import sys
from pathlib import Path
from typing import Any, Dict
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import appsettings
from .lib import (
    Generator,
    GeneratorError,
    ParseError,
    Parser,
    VariableError,
    template_load,
    variables_fromDefinitions,
    variables_loadFile,
    variables_saveFile,
    __version__,
    LOG,
    state_connectToLogger,
)
from .lib.variables import value_fromText
from .models import DIRECTIVE_PREFIX, ProgramState, pipeline


DISPLAY_TITLE = r"""
   _
  (_) __ _ _ __
  | |/ _` | '_ \
  | | (_| | | | |
  |_|\__, |_| |_|
     |___/

  Project scaffolding from directive templates
"""

# Define CLI arguments
parser = ArgumentParser(
    description="ign - generate a project from a directive template",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--varsFile",
    default=None,
    type=str,
    help=f"Variables file ({appsettings.var_file} format). "
    f"Defaults to outputdir/{appsettings.config_dir}/{appsettings.var_file} when present",
)

parser.add_argument(
    "--set",
    action="append",
    default=[],
    metavar="NAME=VALUE",
    help="Set a variable (repeatable); wins over the variables file",
)

parser.add_argument(
    "--overwrite",
    action="store_true",
    help="Replace files that already exist in outputdir",
)

parser.add_argument(
    "--dryRun",
    action="store_true",
    help="Show what would be generated without writing anything",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve directories.

    Returns:
        ProgramState with added fields:
            - templateDir: Resolved template directory
            - projectOutputdir: Resolved output directory
            - envOK: True if environment is valid

    Exits:
        1 if the template directory or its manifest is missing
    """
    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    state.templateDir = Path(state.inputdir).resolve()
    if not state.templateDir.is_dir():
        print(f"Error: Template directory not found: {state.templateDir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    manifest = state.templateDir / appsettings.template_config_file
    if not manifest.is_file():
        print(f"Error: {appsettings.template_config_file} not found in {state.templateDir}",
              file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Template directory: {state.templateDir}", level=2)

    state.projectOutputdir = Path(state.outputdir).resolve()
    if state.projectOutputdir == state.templateDir:
        print("Error: Output directory must differ from the template directory", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Output directory: {state.projectOutputdir}", level=2)

    state.envOK = True
    return state


def template_read(inputstate: ProgramState) -> ProgramState:
    """
    Load the template manifest and files.

    Returns:
        ProgramState with added field:
            - template: Loaded Template

    Exits:
        1 if the template is invalid
    """
    state = inputstate.copy()

    LOG("Loading template...", level=1)
    try:
        state.template = template_load(state.templateDir)
    except GeneratorError as e:
        print(f"Template error: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Template {state.template.manifest.name} {state.template.manifest.version}: "
        f"{len(state.template.files)} files", level=1)
    return state


def template_check(inputstate: ProgramState) -> ProgramState:
    """
    Check directive syntax in every text file before anything is written.

    Returns:
        ProgramState unchanged

    Exits:
        1 if any file holds an unknown or malformed directive, or an
        unbalanced conditional
    """
    state = inputstate.copy()

    LOG("Checking template directives...", level=1)
    checker = Parser()
    problems = []
    checked = 0
    for file in state.template.files:
        if file.is_binary or DIRECTIVE_PREFIX.encode() not in file.content:
            continue
        checked += 1
        try:
            checker.validate(file.content)
        except ParseError as e:
            e.file = file.path
            problems.append(e)

    if problems:
        for problem in problems:
            print(f"Template check error: {problem}", file=sys.stderr)
        print(f"{len(problems)} template file(s) failed the check", file=sys.stderr)
        sys.exit(1)

    LOG(f"Checked {checked} files with directives", level=2)
    return state


def overrides_parse(assignments: Any, definitions: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert --set NAME=VALUE strings to typed values

    Values of declared variables are converted to the declared type,
    undeclared ones are interpreted like directive defaults.

    Raises:
        VariableError: Malformed assignment or unconvertible value
    """
    values: Dict[str, Any] = {}
    for assignment in assignments:
        name, sep, text = assignment.partition("=")
        name = name.strip()
        if not sep or not name:
            raise VariableError(f"invalid --set {assignment!r} (expected NAME=VALUE)")

        definition = definitions.get(name)
        try:
            values[name] = value_fromText(text, definition.type if definition else None)
        except ValueError as exc:
            raise VariableError(f"--set {name}: {exc}") from exc
    return values


def variables_resolve(inputstate: ProgramState) -> ProgramState:
    """
    Merge the variables file, --set overrides and declared defaults.

    Returns:
        ProgramState with added field:
            - variables: Resolved Variables store

    Exits:
        1 if a variable is missing or invalid
    """
    state = inputstate.copy()

    LOG("Resolving variables...", level=1)
    definitions = state.template.manifest.variables

    vars_file = Path(state.varsFile) if state.varsFile else (
        state.projectOutputdir / appsettings.config_dir / appsettings.var_file
    )

    try:
        values: Dict[str, Any] = {}
        if state.varsFile or vars_file.is_file():
            LOG(f"Reading variables from {vars_file}", level=2)
            values.update(variables_loadFile(vars_file))
        values.update(overrides_parse(state.set, definitions))
        state.variables = variables_fromDefinitions(definitions, values)
    except VariableError as e:
        print(f"Variable error: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Resolved {len(state.variables)} variables", level=2)
    for name in state.variables:
        LOG(f"  {name} = {state.variables.get(name)!r}", level=3)
    return state


def project_generate(inputstate: ProgramState) -> ProgramState:
    """
    Run the generator over the template.

    Returns:
        ProgramState with added field:
            - generateResult: GenerateResult

    Exits:
        1 if the output directory cannot be created
    """
    state = inputstate.copy()

    LOG("Generating project...", level=1)
    try:
        state.generateResult = Generator().generate(
            state.template,
            state.variables,
            state.projectOutputdir,
            overwrite=state.overwrite,
            dry_run=state.dryRun,
        )
    except GeneratorError as e:
        print(f"Generation error: {e}", file=sys.stderr)
        sys.exit(1)
    return state


def variables_save(inputstate: ProgramState) -> ProgramState:
    """
    Record the resolved values in the project for later regeneration.

    Writes outputdir/.ign/ign-var.json, backing up an existing one. Dry
    runs and runs with failed files save nothing.

    Exits:
        1 if the file cannot be written
    """
    state = inputstate.copy()
    if state.dryRun or state.generateResult is None or not state.generateResult.ok:
        return state

    vars_file = state.projectOutputdir / appsettings.config_dir / appsettings.var_file
    try:
        backup = variables_saveFile(vars_file, state.variables.all())
    except VariableError as e:
        print(f"Variable error: {e}", file=sys.stderr)
        sys.exit(1)

    if backup:
        LOG(f"Previous variables kept in {backup}", level=1)
    LOG(f"Variables saved to {vars_file}", level=1)
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display generation results to the user.

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if any file failed
    """
    state: ProgramState = inputstate.copy()
    result = state.generateResult
    if result is None:
        print("Error: Generation failed", file=sys.stderr)
        sys.exit(1)

    if state.dryRun:
        LOG("\nDry run - nothing was written:", level=1)
        for preview in result.dry_run_files:
            action = "skip" if preview.would_skip else ("overwrite" if preview.would_overwrite else "create")
            LOG(f"  {action:<9} {preview.path}", level=1)
    else:
        LOG(f"\nGenerated into {state.projectOutputdir}", level=1)

    LOG(f"  Created:     {result.files_created}", level=1)
    LOG(f"  Overwritten: {result.files_overwritten}", level=1)
    LOG(f"  Skipped:     {result.files_skipped}", level=1)

    if result.errors:
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        print(f"{len(result.errors)} file(s) failed", file=sys.stderr)
        sys.exit(1)
    return state


@chris_plugin(
    parser=parser,
    title="ign - project scaffolding from directive templates",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - generate a project from a template directory.

    Orchestrates the full generation pipeline:
        1. env_check: Validate template and output directories
        2. template_read: Load manifest and files
        3. template_check: Check directive syntax before writing anything
        4. variables_resolve: Merge variables file, --set and defaults
        5. project_generate: Process paths and contents, write files
        6. variables_save: Record resolved values in outputdir/.ign
        7. results_report: Display results, exit non-zero on failures

    Args:
        options: CLI arguments from argparse
        inputdir: Template directory
        outputdir: Directory the project is generated into

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(
        state,
        env_check,
        template_read,
        template_check,
        variables_resolve,
        project_generate,
        variables_save,
        results_report,
    )


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
