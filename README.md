# crabcoach

A coach for working through small Rust exercises. Each exercise is a `.rs`
file listed in an `info.toml` file. crabcoach compiles it with `rustc`, then
runs it or its tests, or lints it with Clippy. It tells you when it is time to
move on.

An exercise counts as pending while its source still has a line holding an
`// I AM NOT DONE` comment. Once you are happy with your solution, remove the
comment and the coach goes on to the next exercise.

## Requirements

- Python 3.11 or later
- A Rust toolchain with `rustc` on your `PATH`. Clippy and build-script
  exercises also need `cargo`.
- `git` on your `PATH`, for `reset`

## Installation

```
pip install crabcoach
```

## Usage

Run every command from the directory that holds `info.toml`. If that file is
missing, or if `rustc --version` cannot be run, the command prints a message
and exits with status 1. The one exception is `--version`.

```
crabcoach                  # print a welcome and a short introduction
crabcoach watch            # verify, then re-verify whenever a file under ./exercises changes
crabcoach verify           # verify all exercises in order, stopping at the first unfinished one
crabcoach run <name>       # compile and run, or test, one exercise
crabcoach run next         # run the first exercise that is not done yet
crabcoach hint <name>      # print the hint for an exercise
crabcoach reset <name>     # run `git stash -- <path>` on the exercise file
crabcoach list             # show every exercise, its path and its status
crabcoach lsp              # write ./rust-project.json for rust-analyzer
crabcoach cicvverify       # run all exercises and write a JSON report
crabcoach --version        # print v5.5.1
```

`run`, `verify` and `hint` exit with status 1 when an exercise fails or cannot
be found.

### Options

- `--nocapture` shows the output of test exercises. Place it before the
  subcommand.
- `watch --success-hints` also prints an exercise's hint once the exercise
  passes.
- `list` accepts these options:
  - `--paths`/`-p` shows only the paths.
  - `--names`/`-n` shows only the names.
  - `--filter`/`-f` takes comma-separated patterns and matches them against
    names and paths.
  - `--unsolved`/`-u` shows only exercises that are not done.
  - `--solved`/`-s` shows only exercises that are done.

  The last line of the listing shows your progress.

### Watch mode

While watch mode runs you can type these commands:

- `hint` prints the hint for the exercise that failed last.
- `clear` clears the screen.
- `quit` leaves watch mode.
- `help` lists the commands.
- `!<cmd>` runs a program, for example `!rustc --explain E0381`.

### Emoji

Set `NO_EMOJI` in the environment to replace emoji in the output with plain
characters.

## The `info.toml` file

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

`mode` takes one of these values:

- `compile` builds and runs the program.
- `test` builds the file as a test harness and runs it.
- `clippy` runs `cargo clippy` with warnings denied. It uses
  `exercises/clippy/Cargo.toml`, which it writes itself.
- `buildscript` runs `cargo test` with `exercises/tests/Cargo.toml`, which it
  writes itself.

## Report

`crabcoach cicvverify` runs every exercise at the same time. It then writes
`.github/result/check_result.json`, which lists the name of each exercise and
whether it passed. The file also records the total number of exercises, the
numbers of successes and failures, and the elapsed time in seconds. The
`.github/result` directory must already exist.

## rust-analyzer

`crabcoach lsp` adds one crate for each `.rs` file below `exercises/`. It
takes the standard-library source path from `RUST_SRC_PATH` when that
variable is set. Otherwise it asks `rustc --print sysroot` for the path.

## Using it from Python

- `crabcoach.exercise.load_exercises(path)` reads an `info.toml` into
  `Exercise` objects.
- `Exercise.state()` and `crabcoach.exercise.parse_state(source)` return a
  `State`. `State.done()` is true when no pending marker is left. Otherwise
  `State.context` holds the lines around the marker.
- `crabcoach.verify.verify(...)` checks exercises in order and raises
  `VerificationFailed` at the first one that is not finished.
  `crabcoach.run.run(...)` does the same for a single exercise.
- `crabcoach.checklist.check_all(exercises, output_path)` grades every
  exercise, writes the JSON report and returns an `ExerciseCheckList`.