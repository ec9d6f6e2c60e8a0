import json
import subprocess
from pathlib import Path
from unittest.mock import patch

from crabcoach.project import Crate, RustAnalyzerProject


def test_crate_defaults():
    assert Crate("a.rs").to_dict() == {
        "root_module": "a.rs",
        "edition": "2021",
        "deps": [],
        "cfg": ["test"],
    }


def test_add_path_only_rust_files():
    project = RustAnalyzerProject()
    project.add_path("exercises/intro/intro1.rs")
    project.add_path("exercises/intro/README.md")
    project.add_path("exercises/intro")
    assert [c.root_module for c in project.crates] == ["exercises/intro/intro1.rs"]


def test_exercises_to_json(tmp_path):
    root = tmp_path / "exercises"
    (root / "intro").mkdir(parents=True)
    (root / "if").mkdir()
    (root / "intro" / "intro1.rs").write_text("fn main() {}")
    (root / "if" / "if1.rs").write_text("fn main() {}")
    (root / "if" / "README.md").write_text("notes")
    project = RustAnalyzerProject()
    project.exercises_to_json(root)
    modules = {c.root_module for c in project.crates}
    assert modules == {str(root / "intro" / "intro1.rs"), str(root / "if" / "if1.rs")}


def test_sysroot_from_environment(monkeypatch):
    monkeypatch.setenv("RUST_SRC_PATH", "/src/rust")
    project = RustAnalyzerProject()
    project.get_sysroot_src()
    assert project.sysroot_src == "/src/rust"


def test_sysroot_from_rustc(monkeypatch, capsys):
    monkeypatch.delenv("RUST_SRC_PATH", raising=False)
    done = subprocess.CompletedProcess([], 0, stdout=b"/opt/toolchain\n", stderr=b"")
    with patch("crabcoach.project.subprocess.run", return_value=done) as run:
        project = RustAnalyzerProject()
        project.get_sysroot_src()
    assert run.call_args.args[0] == ["rustc", "--print", "sysroot"]
    assert project.sysroot_src == str(
        Path("/opt/toolchain") / "lib" / "rustlib" / "src" / "rust" / "library"
    )
    assert "Determined toolchain: /opt/toolchain" in capsys.readouterr().out


def test_write_to_disk_round_trip(tmp_path):
    project = RustAnalyzerProject(sysroot_src="/sys")
    project.add_path("x.rs")
    target = tmp_path / "rust-project.json"
    project.write_to_disk(target)
    assert json.loads(target.read_text()) == project.to_dict()
    assert " " not in target.read_text()


def test_empty_project_has_no_crates():
    project = RustAnalyzerProject()
    assert project.to_dict() == {"sysroot_src": "", "crates": []}