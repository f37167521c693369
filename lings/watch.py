"""Watch mode: re-verify exercises whenever a file under exercises/ changes."""

from __future__ import annotations

import itertools
import os
import queue
import subprocess
import sys
import threading
from enum import Enum
from pathlib import Path
from typing import Iterator, Sequence, TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

EXERCISES_DIR = "./exercises"


class WatchStatus(Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """The interactive commands available while watching."""

    def __init__(self, hint: str | None = None, stream: TextIO | None = None) -> None:
        self._lock = threading.Lock()
        self._hint = hint
        self._stream = stream
        self.should_quit = threading.Event()

    @property
    def hint(self) -> str | None:
        with self._lock:
            return self._hint

    @hint.setter
    def hint(self, value: str | None) -> None:
        with self._lock:
            self._hint = value

    def handle(self, line: str) -> None:
        """Carry out one command line."""
        command = line.strip()
        if command == "hint":
            hint = self.hint
            if hint is not None:
                print(hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print("Commands available to you in watch mode:")
            print("  hint   - prints the current exercise's hint")
            print("  clear  - clears the screen")
            print("  quit   - quits watch mode")
            print("  !<cmd> - executes a command, like `!rustc --explain E0381`")
            print("  help   - displays this help message")
            print()
            print("Watch mode automatically re-evaluates the current exercise")
            print("when you edit a file's contents.")
        elif command.startswith("!"):
            cmd = command[1:]
            parts = cmd.split()
            if not parts:
                print("no command provided")
            else:
                try:
                    subprocess.run(parts, check=False)
                except OSError as exc:
                    print(f"failed to execute command `{cmd}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def start(self) -> threading.Thread:
        """Read commands on a background thread until input ends."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._read_commands, daemon=True)
        thread.start()
        return thread

    def _read_commands(self) -> None:
        stream = self._stream if self._stream is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue[str]) -> None:
        super().__init__()
        self._changes = changes

    def on_created(self, event: FileSystemEvent) -> None:
        self._put(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._put(event)

    def _put(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._changes.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print("\x1bc")


def _ends_with(filepath: Path, path: Path) -> bool:
    parts = Path(path).parts
    if not parts:
        return True
    return filepath.parts[-len(parts):] == parts


def _pending_order(filepath: Path, exercises: Sequence[Exercise]) -> Iterator[Exercise]:
    current = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    rest = (
        e for e in exercises if not e.looks_done() and not _ends_with(filepath, e.path)
    )
    return itertools.chain([current] if current is not None else [], rest)


def _drain(changes: queue.Queue[str]) -> list[str]:
    try:
        paths = [changes.get(timeout=1.0)]
    except queue.Empty:
        return []
    while True:
        try:
            paths.append(changes.get_nowait())
        except queue.Empty:
            return list(dict.fromkeys(paths))


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify, then keep re-verifying on file changes until done or told to quit."""
    exercises = list(exercises)
    changes: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), EXERCISES_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except VerificationFailed as exc:
            shell = WatchShell(exc.exercise.hint)
        else:
            return WatchStatus.FINISHED
        shell.start()

        while True:
            for changed in _drain(changes):
                path = Path(changed)
                if path.suffix != ".rs" or not path.exists():
                    continue
                try:
                    filepath = path.resolve(strict=True)
                except OSError:
                    continue
                pending = _pending_order(filepath, exercises)
                num_done = sum(1 for e in exercises if e.looks_done())
                _clear_screen()
                try:
                    verify(pending, (num_done, len(exercises)), verbose, success_hints)
                except VerificationFailed as exc:
                    shell.hint = exc.exercise.hint
                else:
                    return WatchStatus.FINISHED
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()