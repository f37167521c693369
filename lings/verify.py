"""Verification of exercises in the recommended order."""

from __future__ import annotations

import os
from typing import Iterable

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .exercise import CompiledExercise, Exercise, ExerciseFailed, Mode
from .ui import blue, bold, success, warn

_BAR_WIDTH = 60


class VerificationFailed(Exception):
    """An exercise did not compile, did not pass, or is still marked as pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} did not pass verification")
        self.exercise = exercise


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True, emoji=False)


class _Spinner:
    """A transient spinner with a message; finishing it clears it."""

    def __init__(self, message: str) -> None:
        self._status = _console().status(escape(message))
        self._status.start()

    def update(self, message: str) -> None:
        self._status.update(escape(message))

    def finish(self) -> None:
        self._status.stop()


def _print_progress(position: int, total: int, percentage: float) -> None:
    filled = min(position * _BAR_WIDTH // total, _BAR_WIDTH) if total else 0
    line = Text("Progress: [")
    line.append("#" * filled, style="green")
    if filled < _BAR_WIDTH:
        line.append(">", style="green")
        line.append("-" * (_BAR_WIDTH - filled - 1), style="red")
    line.append(f"] {position}/{total} ({percentage:.1f} %)")
    _console().print(line)


def _separator() -> str:
    return bold("====================")


def _compile(exercise: Exercise, spinner: _Spinner) -> CompiledExercise | None:
    try:
        return exercise.compile()
    except ExerciseFailed as exc:
        spinner.finish()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        return None


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    spinner = _Spinner(f"Compiling {exercise}...")
    try:
        compiled = _compile(exercise, spinner)
    finally:
        spinner.finish()
    if compiled is None:
        return False
    compiled.close()
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    spinner = _Spinner(f"Compiling {exercise}...")
    try:
        compiled = _compile(exercise, spinner)
        if compiled is None:
            return False
        with compiled:
            spinner.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except ExerciseFailed as exc:
                spinner.finish()
                warn(f"Ran {exercise} with errors")
                print(exc.output.stdout)
                print(exc.output.stderr)
                return False
            spinner.finish()
            return prompt_for_completion(exercise, output.stdout, success_hints)
    finally:
        spinner.finish()


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    spinner = _Spinner(f"Testing {exercise}...")
    try:
        compiled = _compile(exercise, spinner)
        if compiled is None:
            return False
        with compiled:
            try:
                output = compiled.run()
            except ExerciseFailed as exc:
                spinner.finish()
                warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
                print(exc.output.stdout)
                return False
            spinner.finish()
            if verbose:
                print(output.stdout)
            if interactive:
                return prompt_for_completion(exercise, None, success_hints)
            return True
    finally:
        spinner.finish()


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return _compile_and_test(exercise, True, verbose, success_hints)
        case Mode.COMPILE:
            return _compile_and_run_interactively(exercise, success_hints)
        case Mode.CLIPPY:
            return _compile_only(exercise, success_hints)
    raise ValueError(f"unknown mode {exercise.mode!r}")


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise VerificationFailed at the first that fails."""
    num_done, total = progress
    position = num_done
    percentage = num_done / total * 100.0 if total else 0.0
    _print_progress(position, total, percentage)
    for exercise in exercises:
        if not _check(exercise, verbose, success_hints):
            raise VerificationFailed(exercise)
        if total:
            percentage += 100.0 / total
        position += 1
        _print_progress(position, total, percentage)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run the exercise's test harness without prompting."""
    if not _compile_and_test(exercise, False, verbose, False):
        raise VerificationFailed(exercise)


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None = None, success_hints: bool = False
) -> bool:
    """Return True when the exercise is done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    no_emoji = "NO_EMOJI" in os.environ
    if no_emoji:
        clippy_message = "The code is compiling, and Clippy is happy!"
    else:
        clippy_message = "The code is compiling, and 📎 Clippy 📎 is happy!"
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    console = _console()
    print()
    if no_emoji:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        console.print(_separator())
        print(prompt_output)
        console.print(_separator())
        print()
    if success_hints:
        print("Hints:")
        console.print(_separator())
        print(exercise.hint)
        console.print(_separator())
        print()

    print("You can keep working on this exercise,")
    console.print(
        f"or jump into the next one by removing the {bold('`I AM NOT DONE`')} comment:"
    )
    print()
    for context_line in state.context:
        text = bold(context_line.line) if context_line.important else escape(context_line.line)
        console.print(f"{blue(f'{context_line.number:>2}')} [blue]|[/blue]  {text}")
    return False