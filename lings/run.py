"""Running or resetting a single exercise."""

from __future__ import annotations

import subprocess

from .exercise import Exercise, ExerciseFailed, Mode
from .ui import success, warn
from .verify import VerificationFailed, _Spinner, test


class RunFailed(Exception):
    """A single exercise could not be compiled, run or reset."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run an exercise, or run its tests; raise RunFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            try:
                test(exercise, verbose)
            except VerificationFailed as exc:
                raise RunFailed(exercise) from exc
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start `git stash -- <path>` for the exercise and return the process."""
    try:
        return subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise RunFailed(exercise) from exc


def _compile_and_run(exercise: Exercise) -> None:
    spinner = _Spinner(f"Compiling {exercise}...")
    try:
        try:
            compiled = exercise.compile()
        except ExerciseFailed as exc:
            spinner.finish()
            warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(exc.output.stderr)
            raise RunFailed(exercise) from exc

        with compiled:
            spinner.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except ExerciseFailed as exc:
                spinner.finish()
                print(exc.output.stdout)
                print(exc.output.stderr)
                warn(f"Ran {exercise} with errors")
                raise RunFailed(exercise) from exc
            spinner.finish()
            print(output.stdout)
            success(f"Successfully ran {exercise}")
    finally:
        spinner.finish()