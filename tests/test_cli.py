"""
Command line pipeline tests

Tests the ProgramState pipeline stages that read sources, strip front
matter, and write one HTML page per document.
"""

from argparse import Namespace

import pytest

from blockdown.__main__ import (
    documents_render,
    env_check,
    frontmatter_strip,
    results_report,
    sources_read,
)
from blockdown.models import ProgramState, pipeline


@pytest.fixture
def docs(tmp_path):
    """Input directory with two documents, one in a subdirectory"""
    inputdir = tmp_path / "docs"
    (inputdir / "guide").mkdir(parents=True)
    (inputdir / "index.md").write_text(
        "---\ntitle: Home Page\n---\n# Welcome\n\n:::alert{type:success}Ready:::\n", encoding="utf-8"
    )
    (inputdir / "guide" / "setup.md").write_text(
        ":::tabs\n@tab Linux\napt install x\n@tab Mac\nbrew install x\n:::\n", encoding="utf-8"
    )
    (inputdir / "notes.txt").write_text("not markdown", encoding="utf-8")
    return inputdir, tmp_path / "site"


class TestFrontmatter:
    """Test YAML front matter handling"""

    def test_mapping(self):
        frontmatter, body = frontmatter_strip("---\ntitle: X\ntags: [a, b]\n---\nBody\n")

        assert frontmatter == {"title": "X", "tags": ["a", "b"]}
        assert body == "Body\n"

    def test_absent(self):
        assert frontmatter_strip("# Just text\n") == ({}, "# Just text\n")

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            frontmatter_strip("---\n- a\n- b\n---\nBody\n")

    def test_invalid_yaml(self):
        with pytest.raises(ValueError):
            frontmatter_strip("---\ntitle: [unclosed\n---\nBody\n")


class TestPipeline:
    """Test the full command line pipeline on a temporary directory"""

    def test_pages_written(self, docs):
        inputdir, outputdir = docs
        state = ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0)

        final = pipeline(state, env_check, sources_read, documents_render, results_report)

        assert final.envOK is True
        assert len(final.renderResults) == 2
        assert (outputdir / "index.html").exists()
        assert (outputdir / "guide" / "setup.html").exists()
        assert not (outputdir / "notes.html").exists()

    def test_front_matter_title(self, docs):
        inputdir, outputdir = docs
        pipeline(ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0),
                 env_check, sources_read, documents_render)

        page = (outputdir / "index.html").read_text(encoding="utf-8")
        assert "<title>Home Page</title>" in page
        assert "title: Home Page" not in page
        assert 'class="alert alert-success"' in page

    def test_title_falls_back_to_file_name(self, docs):
        inputdir, outputdir = docs
        final = pipeline(ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0),
                         env_check, sources_read, documents_render)

        titles = {result["title"] for result in final.renderResults}
        assert titles == {"Home Page", "setup"}

    def test_lazy_and_eager_tabs(self, docs):
        inputdir, outputdir = docs

        pipeline(ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0),
                 env_check, sources_read, documents_render)
        assert "brew install x" not in (outputdir / "guide" / "setup.html").read_text(encoding="utf-8")

        pipeline(ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0, eagerTabs=True),
                 env_check, sources_read, documents_render)
        assert "brew install x" in (outputdir / "guide" / "setup.html").read_text(encoding="utf-8")

    def test_pattern_selects_sources(self, docs):
        inputdir, outputdir = docs
        state = ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0, pattern="guide/*.md")

        final = env_check(state)

        assert [path.name for path in final.sourceFiles] == ["setup.md"]


class TestEnvironment:
    """Test environment validation failures"""

    def test_missing_input_directory(self, tmp_path):
        state = ProgramState(inputdir=tmp_path / "missing", outputdir=tmp_path / "out", verbosity=0)
        with pytest.raises(SystemExit):
            env_check(state)

    def test_no_matching_files(self, tmp_path):
        state = ProgramState(inputdir=tmp_path, outputdir=tmp_path / "out", verbosity=0)
        with pytest.raises(SystemExit):
            env_check(state)

    def test_invalid_front_matter_exits(self, tmp_path):
        (tmp_path / "bad.md").write_text("---\n- not a mapping\n---\nx\n", encoding="utf-8")
        state = env_check(ProgramState(inputdir=tmp_path, outputdir=tmp_path / "out", verbosity=0))
        with pytest.raises(SystemExit):
            sources_read(state)

    def test_state_from_namespace(self, tmp_path):
        options = Namespace(pattern="*.md", eagerTabs=True, verbosity=2, unrelated="x")
        state = ProgramState.state_createFromNamespace(options, inputdir=tmp_path, outputdir=tmp_path)

        assert state.pattern == "*.md"
        assert state.eagerTabs is True
        assert state.verbosity == 2
