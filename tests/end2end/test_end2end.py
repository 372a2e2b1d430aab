from pathlib import Path

import pytest

from flatten_copy import cli


def _write(root: Path, rel: str, content: str | bytes) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")


def test_end_to_end_init_then_flatten(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    monkeypatch.delenv("FLATTEN_TARGET", raising=False)
    monkeypatch.delenv("FLATTEN_RULES_FILE", raising=False)
    _write(project, "package.json", "{}")
    _write(project, "src/components/Button.tsx", "button")
    _write(project, "src/components/Button.test.tsx", "test")
    _write(project, "src/types.d.ts", "types")
    _write(project, "src/lib/nav_bar.js", "nav")

    assert cli.main(["--init"]) == cli.EXIT_SUCCESS
    assert cli.main(["--init"]) == cli.EXIT_CONFIG_ERROR
    assert cli.main([]) == cli.EXIT_SUCCESS

    target = tmp_path / "project-flatten-flattened"
    assert sorted(p.name for p in target.iterdir()) == [
        "package.json",
        "src_components_Button.tsx",
        "src_lib_nav__bar.js",
    ]
    assert (target / "src_lib_nav__bar.js").read_text(encoding="utf-8") == "nav"


def test_end_to_end_size_limit_clean_and_gitignore(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    _write(tmp_path, ".flatten", "data/*  # payloads\nlogs/*\n")
    _write(tmp_path, ".gitignore", "*.log\n")
    _write(tmp_path, "data/exact.bin", b"x" * 1024)
    _write(tmp_path, "data/over.bin", b"x" * 1025)
    _write(tmp_path, "logs/run.log", "noise")
    _write(tmp_path, "logs/keep.txt", "keep")
    _write(tmp_path, "out/stale.txt", "old")

    exit_code = cli.main(["--max-size", "1KB", "--clean", "--gitignore", "--stats", "out"])

    assert exit_code == cli.EXIT_SUCCESS
    target = tmp_path / "out"
    assert sorted(p.name for p in target.iterdir()) == ["data_exact.bin", "logs_keep.txt"]
    out = capsys.readouterr().out
    assert "Cleaned 1 existing files from out" in out
    assert "2 files copied to out" in out
    assert "Skipped 1 files" in out


def test_end_to_end_empty_rules_file_fails(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    _write(tmp_path, ".flatten", "# nothing yet\n")

    assert cli.main(["out"]) == cli.EXIT_CONFIG_ERROR
    assert "No file patterns found in .flatten" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()
