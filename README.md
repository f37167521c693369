# lings

`lings` is a command-line companion for working through a set of small Rust
exercises. It reads the exercise list from an `info.toml` file in the current
directory, compiles and runs each exercise with `rustc` (or `cargo` for Clippy
and build-script exercises), and tells you which ones are done.

An exercise counts as pending while its source still has an `I AM NOT DONE`
comment on a line of its own (`// I AM NOT DONE` or `/// I AM NOT DONE`).
Once the exercise compiles and its tests pass, remove the comment and `lings`
moves on to the next one.

## Requirements

- Python 3.11 or later
- `rustc` on your `PATH` (and `cargo` for Clippy and build-script exercises)
- `git`, if you want to use `reset`

## Installation

```
pip install .
```

## The exercise list

`info.toml` holds an array of `[[exercises]]` tables, each with:

- `name`: the name used on the command line
- `path`: the path of the exercise's source file
- `mode`: one of `compile`, `test`, `clippy` or `buildscript`
- `hint`: the text shown by `hint`

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment to move on."
```

How each mode is checked:

- `compile`: built with `rustc` and the binary is run.
- `test`: built with `rustc --test` and the test binary is run.
- `clippy`: writes `exercises/clippy/Cargo.toml`, builds with `rustc`, then
  runs `cargo clean` and `cargo clippy` with warnings denied.
- `buildscript`: writes `exercises/tests/Cargo.toml` and runs `cargo test`.

Compiled binaries are written to a temporary file named `temp_<pid>_<thread>`
in the current directory and removed afterwards.

## Usage

Run every command from the directory that holds `info.toml`; otherwise
`lings` exits with status 1. It also exits with status 1 if `rustc --version`
cannot be run.

```
lings                      # show the welcome text and a short introduction
lings --version            # print the version
lings watch                # verify exercises and re-check whenever a file changes
lings watch --success-hints
lings verify               # verify all exercises in order; exits 1 on the first failure
lings run <name>           # compile and run (or test) a single exercise
lings run next             # run the first exercise that is not yet done
lings hint <name>          # print the hint for an exercise
lings reset <name>         # restore an exercise with `git stash -- <path>`
lings list                 # list exercises with their status
lings lsp                  # write rust-project.json for rust-analyzer
lings cicvverify           # run every exercise and write a JSON report
```

Pass `--nocapture` before the subcommand to show the output of test
exercises, for example `lings --nocapture run <name>`.

`verify` stops at the first exercise that fails to compile, fails its tests,
or still carries the `I AM NOT DONE` comment; for a pending exercise it shows
the lines around the comment. `run` does not look at the comment: it only
compiles and runs the exercise.

An unknown exercise name, or `run next` when everything is done, prints a
message and exits with status 1.

### Listing exercises

`lings list` accepts:

- `-p`, `--paths`: show only paths
- `-n`, `--names`: show only names
- `-f`, `--filter PATTERNS`: comma-separated substrings to match names or paths
- `-u`, `--unsolved`: only exercises still pending
- `-s`, `--solved`: only exercises that are done

It always ends with a progress line such as
`Progress: You completed 3 / 10 exercises (30.0 %).`

### Watch mode

`lings watch` verifies all exercises, then watches the `exercises` directory.
When a `.rs` file is created or modified, it re-verifies that exercise first,
followed by the other pending ones. It ends when every exercise passes or when
you type `quit`.

At the prompt you can type:

- `hint`: show the hint for the current exercise
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a command, e.g. `!rustc --explain E0381`
- `help`: list these commands

### rust-analyzer support

`lings lsp` writes `rust-project.json`, with one crate for every `.rs` file
under `exercises/`. The standard library sources are taken from the
`RUST_SRC_PATH` environment variable, or else from `rustc --print sysroot`.

### Batch grading

`lings cicvverify` runs every exercise concurrently, prints progress as each
one finishes, and writes a summary to `.github/result/check_result.json` with
a per-exercise result, success and failure counts, and the total time taken
in seconds. The `.github/result` directory must already exist.

### Plain output

Set the `NO_EMOJI` environment variable to replace emoji in messages with
plain markers.

## Library use

The modules can also be used directly:

- `lings.exercise`: `Exercise`, `Mode`, `State`, `load_exercises()`
- `lings.verify`: `verify()`, `test()`, `VerificationFailed`
- `lings.run`: `run()`, `reset()`, `RunFailed`
- `lings.project`: `RustAnalyzerProject`, `Crate`
- `lings.checklist`: `cicv_verify()`, `ExerciseCheckList`
- `lings.watch`: `watch()`, `WatchShell`, `WatchStatus`
- `lings.cli`: `main()`, `find_exercise()`, `list_exercises()`