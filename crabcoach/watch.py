"""Watch mode: re-check exercises whenever their files change."""

from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

_DEBOUNCE_SECONDS = 1.0

_HELP = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = enum.auto()
    UNFINISHED = enum.auto()


class WatchShell:
    """The interactive command reader running beside watch mode."""

    def __init__(self, hint: str | None = None, stream: TextIO | None = None) -> None:
        self.hint = hint
        self.should_quit = threading.Event()
        self._stream = stream

    def handle(self, line: str) -> None:
        """Carry out one command typed by the learner."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                print(self.hint)
        elif command == "clear":
            print("\x1B[2J\x1B[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print(_HELP)
        elif command.startswith("!"):
            cmd = command[1:]
            parts = cmd.split()
            if not parts:
                print("no command provided")
                return
            try:
                subprocess.run(parts)
            except OSError as exc:
                print(f"failed to execute command `{cmd}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def run(self) -> None:
        """Read and handle commands until the input ends."""
        stream = self._stream if self._stream is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                continue
            if not line:
                return
            self.handle(line)


class _Forwarder(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue) -> None:
        super().__init__()
        self._changes = changes

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("created", "modified"):
            return
        self._changes.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print("\x1Bc")


def _ends_with(path: Path, suffix: Path) -> bool:
    parts = Path(suffix).parts
    return bool(parts) and Path(path).parts[-len(parts):] == parts


def _pending_exercises(filepath: Path, exercises: Sequence[Exercise]) -> Iterator[Exercise]:
    """The exercise for the changed file first, then every other unfinished one."""
    changed = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    if changed is not None:
        yield changed
    yield from (
        e for e in exercises if not _ends_with(filepath, e.path) and not e.looks_done()
    )


def _debounced(changes: queue.Queue, delay: float = _DEBOUNCE_SECONDS) -> list[str]:
    """Wait up to a second for a change, then collect changes until things go quiet."""
    try:
        first = changes.get(timeout=_DEBOUNCE_SECONDS)
    except queue.Empty:
        return []
    paths = dict.fromkeys([first])
    while True:
        try:
            paths[changes.get(timeout=delay)] = None
        except queue.Empty:
            return list(paths)


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises and keep re-verifying as files under ./exercises change."""
    changes: queue.Queue = queue.Queue()
    observer = Observer()
    observer.schedule(_Forwarder(changes), "./exercises", recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
            return WatchStatus.FINISHED
        except VerificationFailed as failure:
            shell = WatchShell(failure.exercise.hint)
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        threading.Thread(target=shell.run, daemon=True).start()
        while True:
            for changed in _debounced(changes):
                path = Path(changed)
                if path.suffix != ".rs" or not path.exists():
                    continue
                filepath = path.resolve()
                num_done = sum(1 for e in exercises if e.looks_done())
                _clear_screen()
                try:
                    verify(
                        _pending_exercises(filepath, exercises),
                        (num_done, len(exercises)),
                        verbose,
                        success_hints,
                    )
                    return WatchStatus.FINISHED
                except VerificationFailed as failure:
                    shell.hint = failure.exercise.hint
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()