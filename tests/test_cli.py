"""
CLI pipeline stage tests

Stages are called directly on a ProgramState rooted in a temporary
directory.
"""

import pytest

from prevhs.__main__ import (
    config_load,
    env_check,
    output_write,
    results_report,
    source_read,
    text_expand,
)
from prevhs.models import ProgramState, pipeline


def state_make(tmp_path, source, input_file="demo.tape.pre", **fields):
    inputdir = tmp_path / "in"
    inputdir.mkdir(exist_ok=True)
    if source is not None:
        (inputdir / input_file).write_text(source, encoding="utf-8")
    return ProgramState(
        inputdir=inputdir,
        outputdir=tmp_path / "out",
        inputFile=input_file,
        **fields,
    )


def stages_run(state):
    return pipeline(state, env_check, config_load, source_read, text_expand, output_write, results_report)


class TestEnvCheck:
    """Path resolution"""

    def test_output_name_derived(self, tmp_path):
        state = env_check(state_make(tmp_path, "Show"))
        assert state.envOK
        assert state.outputTapeFile == tmp_path / "out" / "demo.tape"
        assert (tmp_path / "out").is_dir()

    def test_output_name_explicit(self, tmp_path):
        state = env_check(state_make(tmp_path, "Show", outputFile="final.tape"))
        assert state.outputTapeFile.name == "final.tape"

    def test_missing_input(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            env_check(state_make(tmp_path, None))
        assert excinfo.value.code == 1
        assert "Input file not found" in capsys.readouterr().err


class TestPipeline:
    """All stages together"""

    def test_expand_to_file(self, tmp_path):
        state = stages_run(state_make(tmp_path, "Use TypeEnter\n\n> TypeEnter $1\nls"))
        assert state.expandedText == "Type `ls`\nEnter"
        assert (tmp_path / "out" / "demo.tape").read_text() == "Type `ls`\nEnter\n"

    def test_project_config_used(self, tmp_path):
        state = state_make(tmp_path, "Use TypeEnter\n\n> TypeEnter $1\nls")
        (state.inputdir / "prevhs.config.toml").write_text('excludePacks = ["builtins"]\n')
        assert stages_run(state).expandedText == "TypeEnter ls"

    def test_explicit_config_missing(self, tmp_path, capsys):
        state = state_make(tmp_path, "Show", config="missing.toml")
        with pytest.raises(SystemExit):
            stages_run(state)
        assert "Config not found" in capsys.readouterr().err

    def test_recursion_exits(self, tmp_path, capsys):
        state = state_make(tmp_path, "A = B\nB = A\n\n> A")
        with pytest.raises(SystemExit) as excinfo:
            stages_run(state)
        assert excinfo.value.code == 1
        assert "Expansion error" in capsys.readouterr().err
        assert not (tmp_path / "out" / "demo.tape").exists()

    def test_strict_header_exits(self, tmp_path, capsys):
        state = state_make(tmp_path, "Use\n\n> Tab", headerValidation="error")
        with pytest.raises(SystemExit):
            stages_run(state)
        assert "Header error" in capsys.readouterr().err

    def test_no_source_text(self, tmp_path):
        with pytest.raises(SystemExit):
            text_expand(state_make(tmp_path, None))
