import subprocess
from pathlib import Path

import pytest

from crabcoach.exercise import Exercise, Mode
from crabcoach.verify import VerificationFailed, prompt_for_completion, test, verify

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
DONE = "// fake_exercise\n\nfn main() {\n\n}\n"


@pytest.fixture(autouse=True)
def _plain_env(monkeypatch):
    for name in ("NO_EMOJI", "FORCE_COLOR", "TTY_COMPATIBLE", "TTY_INTERACTIVE"):
        monkeypatch.delenv(name, raising=False)


def fake_tools(monkeypatch, compile_rc=0, run_rc=0, stdout=b"", stderr=b""):
    calls = []

    def fake(args, capture_output=False, **kwargs):
        calls.append(list(args))
        if args[0] in ("rustc", "cargo"):
            return subprocess.CompletedProcess(args, compile_rc, b"", b"compile error text")
        return subprocess.CompletedProcess(args, run_rc, stdout, stderr)

    monkeypatch.setattr(subprocess, "run", fake)
    return calls


def make_exercise(tmp_path, name, source, mode, hint=""):
    path = tmp_path / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=hint)


def test_verify_passes_when_every_exercise_is_done(tmp_path, monkeypatch):
    calls = fake_tools(monkeypatch)
    exercises = [
        make_exercise(tmp_path, "one", DONE, Mode.COMPILE),
        make_exercise(tmp_path, "two", DONE, Mode.COMPILE),
    ]
    assert verify(exercises, (0, len(exercises))) is None
    assert sum(1 for call in calls if call[0] == "rustc") == 2


def test_verify_stops_at_first_compile_failure(tmp_path, monkeypatch, capsys):
    calls = fake_tools(monkeypatch, compile_rc=1)
    first = make_exercise(tmp_path, "one", DONE, Mode.COMPILE)
    second = make_exercise(tmp_path, "two", DONE, Mode.COMPILE)
    with pytest.raises(VerificationFailed) as excinfo:
        verify([first, second], (0, 2))
    assert excinfo.value.exercise is first
    assert [call[0] for call in calls] == ["rustc"]
    out = capsys.readouterr().out
    assert f"Compiling of {first} failed!" in out
    assert "compile error text" in out


def test_verify_pending_exercise_shows_context(tmp_path, monkeypatch, capsys):
    fake_tools(monkeypatch, stdout=b"program says hi")
    exercise = make_exercise(tmp_path, "pending", PENDING, Mode.COMPILE)
    with pytest.raises(VerificationFailed) as excinfo:
        verify([exercise], (0, 1))
    assert excinfo.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Successfully ran {exercise}!" in out
    assert "🎉 🎉  The code is compiling! 🎉 🎉" in out
    assert "Output:" in out
    assert "program says hi" in out
    assert " 3 |  // I AM NOT DONE" in out
    assert " 5 |  fn main() {" in out


def test_verify_run_failure_reports_output(tmp_path, monkeypatch, capsys):
    fake_tools(monkeypatch, run_rc=1, stdout=b"partial out", stderr=b"panicked")
    exercise = make_exercise(tmp_path, "broken", DONE, Mode.COMPILE)
    with pytest.raises(VerificationFailed):
        verify([exercise], (0, 1))
    out = capsys.readouterr().out
    assert f"Ran {exercise} with errors" in out
    assert "partial out" in out
    assert "panicked" in out


def test_verify_success_hints_prints_hint(tmp_path, monkeypatch, capsys):
    fake_tools(monkeypatch)
    exercise = make_exercise(tmp_path, "hinted", PENDING, Mode.TEST, hint="Look closer")
    with pytest.raises(VerificationFailed):
        verify([exercise], (0, 1), False, True)
    out = capsys.readouterr().out
    assert "Hints:" in out
    assert "Look closer" in out
    assert f"Successfully tested {exercise}!" in out


def test_test_does_not_prompt_for_pending_exercise(tmp_path, monkeypatch, capsys):
    calls = fake_tools(monkeypatch)
    exercise = make_exercise(tmp_path, "pending_test", PENDING, Mode.TEST)
    test(exercise)
    assert calls[0][:2] == ["rustc", "--test"]
    assert calls[1][1] == "--show-output"
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_test_failure_raises(tmp_path, monkeypatch, capsys):
    fake_tools(monkeypatch, run_rc=1, stdout=b"assertion failed")
    exercise = make_exercise(tmp_path, "failing", DONE, Mode.TEST)
    with pytest.raises(VerificationFailed) as excinfo:
        test(exercise)
    assert excinfo.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Testing of {exercise} failed!" in out
    assert "assertion failed" in out


@pytest.mark.parametrize("verbose", [True, False])
def test_test_verbose_controls_output(tmp_path, monkeypatch, capsys, verbose):
    fake_tools(monkeypatch, stdout=b"THIS TEST TOO SHALL PASS")
    exercise = make_exercise(tmp_path, "testSuccess", DONE, Mode.TEST)
    test(exercise, verbose)
    assert ("THIS TEST TOO SHALL PASS" in capsys.readouterr().out) is verbose


def test_prompt_for_completion_done_returns_true_silently(tmp_path, capsys):
    exercise = make_exercise(tmp_path, "finished", DONE, Mode.COMPILE)
    assert prompt_for_completion(exercise, "ignored", True) is True
    assert capsys.readouterr().out == ""


def test_prompt_for_completion_without_emoji(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    exercise = make_exercise(tmp_path, "pending", PENDING, Mode.TEST)
    assert prompt_for_completion(exercise) is False
    out = capsys.readouterr().out
    assert "~*~ The code is compiling, and the tests pass! ~*~" in out
    assert "✓ Successfully tested" in out
    assert "Output:" not in out
    assert "Hints:" not in out


def test_prompt_for_completion_build_script(tmp_path, capsys):
    exercise = make_exercise(tmp_path, "build", PENDING, Mode.BUILD_SCRIPT)
    assert prompt_for_completion(exercise) is False
    out = capsys.readouterr().out
    assert "Build script works!" in out
    assert f"Successfully compiled {exercise}!" in out


def test_verify_clippy_writes_manifest(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    Path("exercises/clippy").mkdir(parents=True)
    monkeypatch.setenv("NO_EMOJI", "1")
    calls = fake_tools(monkeypatch)
    exercise = make_exercise(tmp_path, "clippy1", PENDING, Mode.CLIPPY)
    with pytest.raises(VerificationFailed):
        verify([exercise], (0, 1))
    assert "The code is compiling, and Clippy is happy!" in capsys.readouterr().out
    manifest = Path("exercises/clippy/Cargo.toml").read_text(encoding="utf-8")
    assert 'name = "clippy1"' in manifest
    assert ["cargo", "clean"] == calls[1][:2]
    assert ["cargo", "clippy"] == calls[2][:2]