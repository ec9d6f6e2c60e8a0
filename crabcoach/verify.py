"""Checking exercises: building, running, testing and asking the learner to move on."""

from __future__ import annotations

import enum
import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.status import Status
from rich.text import Text

from .exercise import CompilationError, CompiledExercise, Exercise, Mode, RunError
from .ui import success, warn

_SEPARATOR = "===================="


class VerificationFailed(Exception):
    """An exercise did not build, did not pass, or is still marked pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(str(exercise))
        self.exercise = exercise


class _RunMode(enum.Enum):
    INTERACTIVE = enum.auto()
    NON_INTERACTIVE = enum.auto()


def _console() -> Console:
    return Console(highlight=False, emoji=False, soft_wrap=True)


@contextmanager
def _spinner(message: str) -> Iterator[Status]:
    status = _console().status(message)
    status.start()
    try:
        yield status
    finally:
        status.stop()


def _compile(exercise: Exercise, status: Status) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationError as exc:
        status.stop()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise, status):
            pass
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as exc:
                status.stop()
                warn(f"Ran {exercise} with errors")
                print(exc.output.stdout)
                print(exc.output.stderr)
                raise VerificationFailed(exercise) from exc
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: _RunMode, verbose: bool, success_hints: bool
) -> bool:
    with _spinner(f"Testing {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            try:
                output = compiled.run()
            except RunError as exc:
                status.stop()
                warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
                print(exc.output.stdout)
                raise VerificationFailed(exercise) from exc
    if verbose:
        print(output.stdout)
    if run_mode is _RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return _compile_and_test(exercise, _RunMode.INTERACTIVE, verbose, success_hints)
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
    """Check exercises in order, raising VerificationFailed at the first one not finished."""
    num_done, total = progress
    percentage = num_done / total * 100.0 if total else 0.0
    step = 100.0 / total if total else 0.0
    columns = (
        TextColumn("Progress:"),
        BarColumn(bar_width=60, style="red", complete_style="green", finished_style="green"),
        MofNCompleteColumn(),
        TextColumn("{task.description}"),
    )
    with Progress(*columns, console=Console(stderr=True)) as bar:
        task = bar.add_task(f"({percentage:.1f} %)", total=total, completed=num_done)
        for exercise in exercises:
            if not _check(exercise, verbose, success_hints):
                raise VerificationFailed(exercise)
            percentage += step
            bar.update(task, advance=1, description=f"({percentage:.1f} %)")


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise's tests without prompting; raise VerificationFailed on failure."""
    _compile_and_test(exercise, _RunMode.NON_INTERACTIVE, verbose, False)


def _success_message(mode: Mode, no_emoji: bool) -> str:
    match mode:
        case Mode.COMPILE:
            return "The code is compiling!"
        case Mode.TEST:
            return "The code is compiling, and the tests pass!"
        case Mode.CLIPPY:
            if no_emoji:
                return "The code is compiling, and Clippy is happy!"
            return "The code is compiling, and 📎 Clippy 📎 is happy!"
        case Mode.BUILD_SCRIPT:
            return "Build script works!"
    raise ValueError(f"unknown mode {mode!r}")


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None = None, success_hints: bool = False
) -> bool:
    """Return True if the exercise is no longer marked pending; otherwise show where the marker is."""
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
    message = _success_message(exercise.mode, no_emoji)
    print()
    if no_emoji:
        print(f"~*~ {message} ~*~")
    else:
        print(f"🎉 🎉  {message} 🎉 🎉")
    print()

    console = _console()
    separator = Text(_SEPARATOR, style="bold")
    if prompt_output is not None:
        print("Output:")
        console.print(separator)
        print(prompt_output)
        console.print(separator)
        print()
    if success_hints:
        print("Hints:")
        console.print(separator)
        print(exercise.hint)
        console.print(separator)
        print()

    print("You can keep working on this exercise,")
    console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in state.context:
        body = (context_line.line, "bold") if context_line.important else context_line.line
        console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"),
                " ",
                ("|", "blue"),
                "  ",
                body,
            )
        )
    return False