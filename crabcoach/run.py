"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rich.console import Console

from .exercise import CompilationError, Exercise, Mode, RunError
from .ui import success, warn
from .verify import VerificationFailed, test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run (or test) one exercise, raising VerificationFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Stash local changes to the exercise file with git."""
    return subprocess.Popen(["git", "stash", "--", str(exercise.path)])


def _compile_and_run(exercise: Exercise) -> None:
    status = Console(highlight=False, emoji=False).status(f"Compiling {exercise}...")
    status.start()
    try:
        try:
            compiled = exercise.compile()
        except CompilationError as exc:
            status.stop()
            warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(exc.output.stderr)
            raise VerificationFailed(exercise) from exc
        with compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as exc:
                status.stop()
                print(exc.output.stdout)
                print(exc.output.stderr)
                warn(f"Ran {exercise} with errors")
                raise VerificationFailed(exercise) from exc
    finally:
        status.stop()
    print(output.stdout)
    success(f"Successfully ran {exercise}")