import os
import subprocess
import threading
from pathlib import Path
from unittest import mock

import pytest

from lings.exercise import (
    CompiledExercise,
    ContextLine,
    Exercise,
    ExerciseFailed,
    Mode,
    State,
    clean,
    load_exercises,
    temp_file,
)

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


def _done(stdout=b"", stderr=b"", code=0):
    return subprocess.CompletedProcess(args=[], returncode=code, stdout=stdout, stderr=stderr)


def _exercise(path, mode=Mode.COMPILE, name="example"):
    return Exercise(name=name, path=Path(path), mode=mode, hint="")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_clean(workdir):
    (workdir / "pending_exercise.rs").write_text(PENDING)
    Path(temp_file()).touch()
    exercise = _exercise("pending_exercise.rs")
    with mock.patch("lings.exercise.subprocess.run", return_value=_done()):
        with exercise.compile() as compiled:
            assert isinstance(compiled, CompiledExercise)
    assert not Path(temp_file()).exists()


def test_pending_state(tmp_path):
    path = tmp_path / "pending_exercise.rs"
    path.write_text(PENDING)
    expected = State((
        ContextLine("// fake_exercise", 1, False),
        ContextLine("", 2, False),
        ContextLine("// I AM NOT DONE", 3, True),
        ContextLine("", 4, False),
        ContextLine("fn main() {", 5, False),
    ))
    exercise = _exercise(path, name="pending_exercise")
    assert exercise.state() == expected
    assert exercise.looks_done() is False


def test_finished_exercise(tmp_path):
    path = tmp_path / "finished_exercise.rs"
    path.write_text(FINISHED)
    exercise = _exercise(path, name="finished_exercise")
    assert exercise.state() == State()
    assert exercise.looks_done() is True


def test_exercise_with_output(workdir):
    (workdir / "testSuccess.rs").write_text("#[test]\nfn passing() {}\n")
    exercise = _exercise("testSuccess.rs", Mode.TEST, "exercise_with_output")
    responses = [_done(), _done(stdout=b"THIS TEST TOO SHALL PASS\n")]
    with mock.patch("lings.exercise.subprocess.run", side_effect=responses) as run:
        with exercise.compile() as compiled:
            out = compiled.run()
    assert "THIS TEST TOO SHALL PASS" in out.stdout
    compile_args = run.call_args_list[0].args[0]
    assert compile_args[:3] == ["rustc", "--test", "testSuccess.rs"]
    assert "--edition" in compile_args and "2021" in compile_args
    assert run.call_args_list[1].args[0] == [temp_file(), "--show-output"]


def test_marker_on_first_line(tmp_path):
    path = tmp_path / "x.rs"
    path.write_text("// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n")
    context = _exercise(path).state().context
    assert [c.number for c in context] == [1, 2, 3]
    assert context[0].important is True


@pytest.mark.parametrize("line", ["/// I AM NOT DONE", "   //I   AM  NOT DONE", "//\tI AM NOT DONE"])
def test_marker_variants_are_pending(tmp_path, line):
    path = tmp_path / "x.rs"
    path.write_text(f"fn main() {{}}\n{line}\n")
    assert _exercise(path).looks_done() is False


def test_marker_inside_code_is_not_pending(tmp_path):
    path = tmp_path / "x.rs"
    path.write_text('let s = "// I AM NOT DONE";\n')
    assert _exercise(path).looks_done() is True


def test_crlf_lines_are_stripped(tmp_path):
    path = tmp_path / "x.rs"
    path.write_bytes(b"a\r\n// I AM NOT DONE\r\nb\r\n")
    context = _exercise(path).state().context
    assert [c.line for c in context] == ["a", "// I AM NOT DONE", "b"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        _exercise(tmp_path / "absent.rs").state()


def test_compile_failure_reports_output_and_cleans(workdir):
    Path(temp_file()).touch()
    exercise = _exercise("broken.rs")
    with mock.patch("lings.exercise.subprocess.run",
                    return_value=_done(stderr=b"expected pattern", code=1)):
        with pytest.raises(ExerciseFailed) as info:
            exercise.compile()
    assert info.value.output.stderr == "expected pattern"
    assert not Path(temp_file()).exists()


def test_compile_missing_tool(workdir):
    with mock.patch("lings.exercise.subprocess.run", side_effect=FileNotFoundError):
        with pytest.raises(RuntimeError, match="Failed to run 'compile' command."):
            _exercise("a.rs").compile()


def test_run_failure_raises(workdir):
    exercise = _exercise("a.rs")
    with mock.patch("lings.exercise.subprocess.run",
                    return_value=_done(stdout=b"partial", code=101)):
        with pytest.raises(ExerciseFailed) as info:
            exercise.run()
    assert info.value.output.stdout == "partial"


def test_compile_mode_runs_without_extra_argument(workdir):
    with mock.patch("lings.exercise.subprocess.run", return_value=_done(stdout=b"hi")) as run:
        out = _exercise("a.rs").run()
    assert out.stdout == "hi"
    assert run.call_args.args[0] == [temp_file()]


def test_build_script_run_is_empty(workdir):
    with mock.patch("lings.exercise.subprocess.run") as run:
        out = _exercise("build.rs", Mode.BUILD_SCRIPT).run()
    assert (out.stdout, out.stderr) == ("", "")
    assert run.call_count == 0


def test_clippy_writes_manifest(workdir):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    exercise = _exercise("exercises/clippy/clippy1.rs", Mode.CLIPPY, "clippy1")
    with mock.patch("lings.exercise.subprocess.run",
                    return_value=_done(stdout=b"clippy output")) as run:
        with exercise.compile() as compiled:
            assert run.call_count == 3
            assert run.call_args_list[2].args[0][:2] == ["cargo", "clippy"]
            out = compiled.run()
    assert out.stdout == "clippy output"
    manifest = (workdir / "exercises" / "clippy" / "Cargo.toml").read_text()
    assert 'name = "clippy1"' in manifest
    assert 'path = "clippy1.rs"' in manifest


def test_clippy_lint_failure(workdir):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    exercise = _exercise("exercises/clippy/clippy1.rs", Mode.CLIPPY, "clippy1")
    responses = [_done(), _done(), _done(stderr=b"lint", code=1)]
    with mock.patch("lings.exercise.subprocess.run", side_effect=responses):
        with pytest.raises(ExerciseFailed) as info:
            exercise.compile()
    assert info.value.output.stderr == "lint"


def test_manifest_write_failure(workdir, monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    exercise = _exercise("b.rs", Mode.BUILD_SCRIPT, "build1")
    with mock.patch("lings.exercise.subprocess.run", return_value=_done()):
        with pytest.raises(RuntimeError, match="Failed to write Clippy Cargo.toml file."):
            exercise.compile()


def test_temp_file_is_per_thread():
    mine = temp_file()
    assert mine == temp_file()
    assert mine.startswith(f"./temp_{os.getpid()}_")
    other = []
    thread = threading.Thread(target=lambda: other.append(temp_file()))
    thread.start()
    thread.join()
    assert other[0] != mine


def test_clean_without_file_is_silent(workdir):
    clean()
    assert not Path(temp_file()).exists()


def test_str_is_path():
    assert str(_exercise("exercises/intro/intro1.rs")) == "exercises/intro/intro1.rs"


def test_load_exercises(tmp_path):
    info = tmp_path / "info.toml"
    info.write_text(
        '[[exercises]]\nname = "intro1"\npath = "exercises/intro/intro1.rs"\n'
        'mode = "compile"\nhint = "No hints this time ;)"\n\n'
        '[[exercises]]\nname = "tests5"\npath = "exercises/tests/build.rs"\n'
        'mode = "buildscript"\nhint = ""\n'
    )
    exercises = load_exercises(info)
    assert [e.name for e in exercises] == ["intro1", "tests5"]
    assert exercises[0].mode is Mode.COMPILE
    assert exercises[0].hint == "No hints this time ;)"
    assert exercises[1].mode is Mode.BUILD_SCRIPT
    assert exercises[1].path == Path("exercises/tests/build.rs")


def test_from_dict_rejects_unknown_mode():
    with pytest.raises(ValueError):
        Exercise.from_dict({"name": "a", "path": "a.rs", "mode": "bogus", "hint": ""})


def test_from_dict_requires_fields():
    with pytest.raises(ValueError, match="hint"):
        Exercise.from_dict({"name": "a", "path": "a.rs", "mode": "test"})


def test_load_exercises_without_list(tmp_path):
    info = tmp_path / "info.toml"
    info.write_text('title = "none"\n')
    with pytest.raises(ValueError):
        load_exercises(info)