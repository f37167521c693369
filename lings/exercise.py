"""Exercises: their description, compilation, execution and completion state."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean() -> None:
    """Remove the temporary binary, ignoring any error."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state; an empty context means the exercise is done."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a finished process."""

    stdout: str
    stderr: str


class ExerciseFailed(Exception):
    """A compilation or run that exited unsuccessfully."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


def _output(completed: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(completed.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(completed.stderr or b"").decode("utf-8", errors="replace"),
    )


def _execute(args: list[str], error: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True, check=False)
    except OSError as exc:
        raise RuntimeError(error) from exc


def _lines(source: str) -> list[str]:
    parts = source.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


class CompiledExercise:
    """A successfully compiled exercise; closing it removes the binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise

    def run(self) -> ExerciseOutput:
        return self.exercise.run()

    def close(self) -> None:
        clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


@dataclass(frozen=True)
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Exercise:
        try:
            return cls(
                name=str(data["name"]),
                path=Path(data["path"]),
                mode=Mode(data["mode"]),
                hint=str(data["hint"]),
            )
        except KeyError as exc:
            raise ValueError(f"exercise is missing field {exc.args[0]!r}") from exc

    def _rustc_args(self, *extra: str) -> list[str]:
        return ["rustc", *extra, str(self.path), "-o", temp_file(),
                *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]

    def _write_manifest(self, manifest: str) -> None:
        n = self.name
        content = (
            f'[package]\nname = "{n}"\nversion = "0.0.1"\nedition = "2021"\n'
            f'[[bin]]\nname = "{n}"\npath = "{n}.rs"'
        )
        if "NO_EMOJI" in os.environ:
            error = "Failed to write Clippy Cargo.toml file."
        else:
            error = "Failed to write 📎 Clippy 📎 Cargo.toml file."
        try:
            Path(manifest).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(error) from exc

    def _compile_process(self) -> subprocess.CompletedProcess:
        failed = "Failed to run 'compile' command."
        match self.mode:
            case Mode.COMPILE:
                return _execute(self._rustc_args(), failed)
            case Mode.TEST:
                return _execute(self._rustc_args("--test"), failed)
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # A runnable binary is built too; a failure here shows up in clippy.
                _execute(self._rustc_args(), "Failed to compile!")
                _execute(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS],
                    "Failed to run 'cargo clean'",
                )
                return _execute(
                    ["cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS, "--", "-D", "warnings", "-D", "clippy::float_cmp"],
                    failed,
                )
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                return _execute(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH],
                    failed,
                )
        raise ValueError(f"unknown mode {self.mode!r}")

    def compile(self) -> CompiledExercise:
        """Compile the exercise; raise ExerciseFailed with the compiler output."""
        completed = self._compile_process()
        if completed.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise ExerciseFailed(_output(completed))

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise ExerciseFailed on a non-zero exit."""
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        completed = _execute(args, "Failed to run 'run' command")
        output = _output(completed)
        if completed.returncode != 0:
            raise ExerciseFailed(output)
        return output

    def state(self) -> State:
        """Return Done, or the lines around the `I AM NOT DONE` marker."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()
        lines = _lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)), None
        )
        if matched is None:
            raise RuntimeError("This should not happen at all")
        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return State(tuple(
            ContextLine(line=line, number=i + 1, important=i == matched)
            for i, line in enumerate(lines)
            if first <= i <= last
        ))

    def looks_done(self) -> bool:
        """Whether the marker comment has been removed."""
        return self.state().done()

    def __str__(self) -> str:
        return str(self.path)


def load_exercises(path: str | os.PathLike[str] = "info.toml") -> list[Exercise]:
    """Read the list of exercises from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    entries = data.get("exercises")
    if not isinstance(entries, list):
        raise ValueError("info.toml has no exercises list")
    return [Exercise.from_dict(entry) for entry in entries]