"""Command-line entry point: parse arguments and dispatch to the subcommands."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

from .checklist import check_all
from .exercise import Exercise, load_exercises
from .project import RustAnalyzerProject
from .run import reset
from .run import run as run_exercise
from .verify import VerificationFailed, verify
from .watch import WatchStatus, watch

VERSION = "5.5.1"
PROGRAM = "crabcoach"
INFO_FILE = "info.toml"

WELCOME = r"""       welcome to...
   ___           _
  / __|_ _ __ _ | |__  __ ___  __ _ __| |_
 | (__| '_/ _` || '_ \/ _/ _ \/ _` / _| ' \
  \___|_| \__,_||_.__/\__\___/\__,_\__|_||_|"""

DEFAULT_OUT = f"""Thanks for installing {PROGRAM}!

Is this your first time? Don't worry, these exercises were made for beginners! We
are going to teach you a lot of things about Rust, but before we can get started,
here's a couple of notes about how this tool operates:

1. The central concept is that you solve exercises. These exercises usually have
   some sort of syntax error in them, which will cause them to fail compilation
   or testing. Sometimes there's a logic error instead of a syntax error. No
   matter what error, it's your job to find it and fix it! You'll know when you
   fixed it because then, the exercise will compile and the tool will be able
   to move on to the next exercise.
2. If you run in watch mode (which we recommend), it'll automatically start with
   the first exercise. Don't get confused by an error message popping up as soon
   as you start! This is part of the exercise that you're supposed to solve, so
   open the exercise file in an editor and start your detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `{PROGRAM} hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to report it to the people
   maintaining your copy of the exercises.
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `{PROGRAM} lsp`.

Got all that? Great! To get started, run `{PROGRAM} watch` in order to get the first
exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""


class _Parser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        prefix = "the following arguments are required"
        if message.startswith(prefix):
            missing = message.split(":", 1)[1].strip()
            message = f"Required positional arguments not provided: {missing}"
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the parser for the command line."""
    parser = _Parser(
        prog=PROGRAM,
        description="A collection of small exercises to get you used to writing "
        "and reading Rust code",
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("verify", help="Verifies all exercises according to the recommended order")

    watch_parser = sub.add_parser("watch", help="Reruns `verify` when files were edited")
    watch_parser.add_argument(
        "--success-hints", action="store_true", help="show hints on success"
    )

    for name, text in (
        ("run", "Runs/Tests a single exercise"),
        ("reset", 'Resets a single exercise using "git stash -- <filename>"'),
        ("hint", "Returns a hint for the given exercise"),
    ):
        command = sub.add_parser(name, help=text)
        command.add_argument("name", help="the name of the exercise")

    list_parser = sub.add_parser("list", help="Lists the exercises available")
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        default=None,
        help="a string to match exercise names; comma separated patterns are acceptable",
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only exercises not yet solved"
    )
    list_parser.add_argument(
        "-s", "--solved", action="store_true", help="display only exercises that have been solved"
    )

    sub.add_parser("lsp", help="Enable rust-analyzer for exercises")
    sub.add_parser("cicvverify", help="cicvverify")
    return parser


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Find an exercise by name; "next" means the first one not yet done."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise LookupError(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise LookupError(f"No exercise found for '{name}'!")
    return found


def list_exercises(
    exercises: Iterable[Exercise],
    paths: bool = False,
    names: bool = False,
    filters: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> list[str]:
    """Return the lines of the exercise listing, ending with the progress line."""
    exercises = list(exercises)
    lines: list[str] = []
    if not paths and not names:
        lines.append(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}")
    patterns = [f for f in (filters or "").lower().split(",") if f.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        matches = filters is None or any(
            pattern in exercise.name or pattern in fname for pattern in patterns
        )
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if not (wanted and matches):
            continue
        if paths:
            lines.append(fname)
        elif names:
            lines.append(exercise.name)
        else:
            lines.append(f"{exercise.name:<17}\t{fname:<46}\t{status:<7}")
    total = len(exercises)
    percentage = f"{done_count / total * 100.0:.1f}" if total else "NaN"
    lines.append(
        f"Progress: You completed {done_count} / {total} exercises ({percentage} %)."
    )
    return lines


def rustc_exists() -> bool:
    """True if `rustc --version` can be run successfully."""
    try:
        proc = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL)
    except OSError:
        return False
    return proc.returncode == 0


def _print_listing(lines: list[str]) -> int:
    try:
        for line in lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
    except BrokenPipeError:
        return 0
    except OSError:
        return 1
    return 0


def _lsp() -> int:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError:
        print("Couldn't find toolchain path, do you have `rustc` installed?")
        return 1
    try:
        project.exercises_to_json()
    except OSError:
        print("Couldn't parse exercises files")
        return 1
    if not project.crates:
        print("Failed find any exercises, make sure you're in the exercises folder")
        return 0
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return 0
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")
    return 0


def _watch(exercises: list[Exercise], verbose: bool, success_hints: bool) -> int:
    try:
        status = watch(exercises, verbose, success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print(
            "Most likely you've run out of disk space or your 'inotify limit' "
            "has been reached."
        )
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if "NO_EMOJI" in os.environ else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print(
            "If you want to continue working on the exercises at a later point, "
            f"you can simply run `{PROGRAM} watch` again"
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else (0 if exc.code is None else 1)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{PROGRAM} must be run from the directory holding {INFO_FILE}")
        print("Try `cd` into the exercises directory first!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    match args.command:
        case "list":
            lines = list_exercises(
                exercises, args.paths, args.names, args.filter, args.unsolved, args.solved
            )
            return _print_listing(lines)
        case "run" | "reset" | "hint":
            try:
                exercise = find_exercise(args.name, exercises)
            except LookupError as exc:
                print(exc)
                return 1
            if args.command == "hint":
                print(exercise.hint)
                return 0
            if args.command == "reset":
                try:
                    reset(exercise)
                except OSError:
                    return 1
                return 0
            try:
                run_exercise(exercise, verbose)
            except VerificationFailed:
                return 1
            return 0
        case "verify":
            try:
                verify(exercises, (0, len(exercises)), verbose, False)
            except VerificationFailed:
                return 1
            return 0
        case "cicvverify":
            check_all(exercises)
            return 0
        case "lsp":
            return _lsp()
        case "watch":
            return _watch(exercises, verbose, args.success_hints)
    return 1


if __name__ == "__main__":
    sys.exit(main())