"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing generation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

# Forward references for type hints - avoid circular import
if TYPE_CHECKING:
    from ..lib.generator import GenerateResult
    from ..lib.variables import Variables
    from .template import Template


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the generation pipeline (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, varsFile, set, overwrite, dryRun
        - env_check: templateDir, projectOutputdir, envOK
        - template_read: template
        - variables_resolve: variables
        - project_generate: generateResult
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Template directory (contains ign-template.json)
        outputdir: Directory the project is generated into
        verbosity: Logging verbosity level (1-3)
        varsFile: Optional ign-var.json path
        set: NAME=VALUE overrides from the command line
        overwrite: Replace files that already exist
        dryRun: Report what would be generated without writing
        envOK: Environment validation passed
        templateDir: Resolved template directory
        projectOutputdir: Resolved output directory
        template: Loaded template
        variables: Resolved variable store
        generateResult: Generation outcome
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    varsFile: Optional[str] = field(default=None)
    set: List[str] = field(default_factory=list)
    overwrite: bool = field(default=False)
    dryRun: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    templateDir: Path = field(default=Path("/"))
    projectOutputdir: Path = field(default=Path("/"))
    template: Optional["Template"] = field(default=None)
    variables: Optional["Variables"] = field(default=None)
    generateResult: Optional["GenerateResult"] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments (varsFile, set, overwrite, ...)
            inputdir: Template directory
            outputdir: Generation output directory

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Only options that ProgramState knows about
        filtered_options: Dict[str, Any] = {
            k: v for k, v in vars(options).items() if k in valid_fields
        }
        if filtered_options.get("set") is None:
            filtered_options["set"] = []

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}
        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            template_read,
            variables_resolve,
            project_generate,
            results_report
        )
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
