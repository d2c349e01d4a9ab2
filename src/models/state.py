"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

import dataclasses
from functools import reduce
from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class SourceDocument:
    """
    A Markdown source read from the input directory

    Attributes:
        path: Path of the source relative to the input directory
        frontmatter: Parsed YAML front matter (empty when absent)
        body: Document text with the front matter removed
    """
    path: Path
    frontmatter: Dict[str, Any]
    body: str

    @property
    def title(self) -> str:
        return str(self.frontmatter.get("title") or self.path.stem)


@dataclass
class ProgramState:
    """
    Central state container for the rendering pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as rendering progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, pattern, eagerTabs
        - env_check: sourceFiles, envOK
        - sources_read: sources
        - documents_render: renderResults
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing Markdown sources
        outputdir: Directory receiving rendered HTML pages
        verbosity: Logging verbosity level (1-3)
        pattern: Glob selecting sources inside inputdir
        eagerTabs: Realise every tab pane up front
        envOK: Environment validation passed
        sourceFiles: Matched source paths
        sources: Documents read from sourceFiles
        renderResults: One dict per written page (source, output_file, title)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    pattern: str = field(default="**/*.md")
    eagerTabs: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    sourceFiles: List[Path] = field(default_factory=list)
    sources: List[SourceDocument] = field(default_factory=list)
    renderResults: Optional[List[Dict[str, Any]]] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments (pattern, eagerTabs, verbosity)
            inputdir: Directory containing source files
            outputdir: Directory for rendered output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        # Only keep options that are ProgramState fields
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

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
            sources_read,
            documents_render,
            results_report
        )

    This is equivalent to:
        results_report(documents_render(sources_read(env_check(initial_state))))
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
