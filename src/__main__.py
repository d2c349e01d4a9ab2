#!/usr/bin/env python3
"""
blockdown - Markdown extension renderer

Renders Markdown documents that use blockdown's extension blocks
(:::alert, :::tabs, :::timeline, :::chat, :::link-card, :::chart, :::video)
and inline extensions (==mark==, ^sup^, ~sub~, attributed images, icon
links) to standalone HTML pages.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Usage:
    blockdown inputdir/ outputdir/ [--pattern '**/*.md'] [--eagerTabs]

    Every matching source is written to outputdir/ at the same relative
    path, with an .html suffix. YAML front matter is stripped; its title
    becomes the page title.

Examples:
    # Render every Markdown file under docs/
    blockdown docs/ site/

    # Static export: realise every tab pane up front
    blockdown docs/ site/ --eagerTabs

    # Verbose output
    blockdown docs/ site/ -vv
"""

import re
import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from typing import Any, Dict, Tuple

import yaml
from chris_plugin import chris_plugin

from .lib import Compiler, __version__, LOG, state_connectToLogger
from .models import ProgramState, RenderContext, SourceDocument, pipeline


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)

# Define CLI arguments
parser = ArgumentParser(
    description="blockdown - render Markdown extension blocks to HTML",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pattern", default="**/*.md", type=str, help="Glob selecting source files inside inputdir"
)

parser.add_argument(
    "--eagerTabs",
    default=False,
    action="store_true",
    help="Render every tab pane up front instead of only the first",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def frontmatter_strip(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split YAML front matter from a document

    Args:
        text: Raw file contents

    Returns:
        (front matter mapping, document body)

    Raises:
        ValueError: If the front matter is not a YAML mapping
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        frontmatter = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML front matter: {e}") from e
    if not isinstance(frontmatter, dict):
        raise ValueError(f"Invalid YAML front matter: expected a mapping, got {type(frontmatter).__name__}")
    return frontmatter, text[match.end():]


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and collect source files.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - sourceFiles: Sorted paths matching the pattern
            - envOK: True if environment is valid

    Exits:
        1 if the input directory is missing or nothing matches the pattern
    """
    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    if state.inputdir is None or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.sourceFiles = sorted(path for path in state.inputdir.glob(state.pattern) if path.is_file())
    if not state.sourceFiles:
        print(f"Error: No files match {state.pattern} in {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Found {len(state.sourceFiles)} source files", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def sources_read(inputstate: ProgramState) -> ProgramState:
    """
    Read every source file and strip its front matter.

    Args:
        inputstate: Program state with sourceFiles set

    Returns:
        ProgramState with added field:
            - sources: List[SourceDocument]

    Exits:
        1 if a file cannot be read or has invalid front matter
    """
    state = inputstate.copy()

    LOG("Reading source files...", level=1)
    sources = []
    for path in state.sourceFiles:
        try:
            frontmatter, body = frontmatter_strip(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            sys.exit(1)
        sources.append(SourceDocument(
            path=path.relative_to(state.inputdir), frontmatter=frontmatter, body=body
        ))
        LOG(f"Read {len(body)} characters from {path.name}", level=2)

    state.sources = sources
    return state


def documents_render(inputstate: ProgramState) -> ProgramState:
    """
    Render every source to a standalone HTML page.

    Each document gets its own RenderContext, so heading ids and tab sets
    never leak between pages.

    Args:
        inputstate: Program state with sources read

    Returns:
        ProgramState with added field:
            - renderResults: one dict per page (output_file, title, tabsets)
    """
    state = inputstate.copy()

    LOG("Rendering documents...", level=1)
    results = []
    for source in state.sources:
        context = RenderContext(verbosity=state.verbosity, eager_tabs=state.eagerTabs)
        compiler = Compiler(context)
        output_file = state.outputdir / source.path.with_suffix(".html")
        results.append(compiler.compile(source.body, output_file, source.title))

    state_connectToLogger(state)
    state.renderResults = results
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display rendering results to user.

    Args:
        inputstate: Program state with renderResults populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if renderResults is None
    """
    state: ProgramState = inputstate.copy()
    if state.renderResults is None:
        print("Error: Rendering failed", file=sys.stderr)
        sys.exit(1)

    LOG(f"Rendered {len(state.renderResults)} documents", level=1)
    for result in state.renderResults:
        LOG(f"  {result['output_file']}  ({result['title']})", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="blockdown - Markdown extension renderer",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - render blockdown Markdown sources to HTML pages.

    Orchestrates the pipeline:
        1. env_check: Validate paths and collect sources
        2. sources_read: Read sources and strip front matter
        3. documents_render: Render each document to a page
        4. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing Markdown sources
        outputdir: Directory where pages will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, sources_read, documents_render, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
