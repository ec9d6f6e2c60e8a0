"""Exercise definitions, their on-disk state, and how they are built and run."""

from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_ThreadId{threading.get_ident()}"


def _clean() -> None:
    try:
        os.remove(temp_file())
    except OSError:
        pass


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _capture(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(args, capture_output=True)


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or of a built binary."""

    stdout: str
    stderr: str


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state of an exercise; an empty context means it is done."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


class CompilationError(Exception):
    """Building an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


class RunError(Exception):
    """A built exercise exited unsuccessfully."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


def _lines(source: str) -> list[str]:
    if not source:
        return []
    parts = source.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def parse_state(source: str) -> State:
    """Work out the state of an exercise from its source text."""
    if not I_AM_DONE_REGEX.search(source):
        return State()
    lines = _lines(source)
    matched = next(
        (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
        None,
    )
    if matched is None:
        raise ValueError("pending marker found but no single line carries it")
    low = max(matched - CONTEXT, 0)
    high = matched + CONTEXT
    return State(
        tuple(
            ContextLine(line=line, number=index + 1, important=index == matched)
            for index, line in enumerate(lines)
            if low <= index <= high
        )
    )


def _manifest(name: str) -> str:
    return (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )


def _write_manifest(path: str, name: str) -> None:
    try:
        Path(path).write_text(_manifest(name), encoding="utf-8")
    except OSError as exc:
        if "NO_EMOJI" in os.environ:
            message = "Failed to write Clippy Cargo.toml file."
        else:
            message = "Failed to write 📎 Clippy 📎 Cargo.toml file."
        raise OSError(message) from exc


@dataclass
class Exercise:
    """One exercise as described in the exercise list."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def compile(self) -> CompiledExercise:
        """Build the exercise, raising CompilationError on failure."""
        temp = temp_file()
        source = str(self.path)
        match self.mode:
            case Mode.COMPILE:
                proc = _capture(
                    ["rustc", source, "-o", temp, *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
                )
            case Mode.TEST:
                proc = _capture(
                    ["rustc", "--test", source, "-o", temp,
                     *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
                )
            case Mode.CLIPPY:
                _write_manifest(CLIPPY_CARGO_TOML_PATH, self.name)
                # Build a binary too so the exercise can be run; failures show up via clippy.
                _capture(["rustc", source, "-o", temp, *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS])
                # A clean is needed so that clippy reports every lint.
                _capture(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS]
                )
                proc = _capture(
                    ["cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS, "--", "-D", "warnings", "-D", "clippy::float_cmp"]
                )
            case Mode.BUILD_SCRIPT:
                _write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
                proc = _capture(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]
                )
        if proc.returncode == 0:
            return CompiledExercise(self)
        _clean()
        raise CompilationError(ExerciseOutput(_decode(proc.stdout), _decode(proc.stderr)))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput("", "")
        arg = "--show-output" if self.mode is Mode.TEST else ""
        proc = subprocess.run([temp_file(), arg], capture_output=True)
        output = ExerciseOutput(_decode(proc.stdout), _decode(proc.stderr))
        if proc.returncode != 0:
            raise RunError(output)
        return output

    def state(self) -> State:
        """Read the exercise file and report whether it is still marked pending."""
        return parse_state(Path(self.path).read_text(encoding="utf-8"))

    def looks_done(self) -> bool:
        """True when the pending marker has been removed from the source."""
        return self.state().done()

    def __str__(self) -> str:
        return str(self.path)


class CompiledExercise:
    """A built exercise; closing it removes the built binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the built binary, raising RunError on a failing exit status."""
        return self.exercise._run()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            _clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Load the exercise list from a TOML file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    return [
        Exercise(
            name=entry["name"],
            path=Path(entry["path"]),
            mode=Mode(entry["mode"]),
            hint=entry["hint"],
        )
        for entry in data["exercises"]
    ]