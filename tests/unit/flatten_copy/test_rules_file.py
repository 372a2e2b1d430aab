from __future__ import annotations

from pathlib import Path

import pytest

from flatten_copy.config import INIT_TEMPLATE, ExcludeRule, RuleOrigin
from flatten_copy.exceptions import (
    EmptyRulesFileError,
    InvalidPatternError,
    RulesFileExistsError,
    RulesFileNotFoundError,
    UnreadableRulesFileError,
)
from flatten_copy.rules_file import (
    load_gitignore_patterns,
    load_rules,
    parse_rules,
    strip_comment,
    write_init_file,
)


@pytest.mark.unit
def test_strip_comment_keeps_text_before_hash() -> None:
    assert strip_comment("  src/*.ts   # sources") == "src/*.ts"
    assert strip_comment("# only a comment") == ""


@pytest.mark.unit
def test_parse_rules_splits_includes_and_excludes_in_order() -> None:
    text = "\n".join([
        "# header",
        "package.json",
        "",
        "src/**/*.ts  # code",
        "!**/*.test.*",
        "   ",
        "  !**/dist/**  ",
        "README.md",
    ])

    rules = parse_rules(text)

    assert rules.includes == ["package.json", "src/**/*.ts", "README.md"]
    assert rules.excludes == [
        ExcludeRule(pattern="**/*.test.*", origin=RuleOrigin.RULES),
        ExcludeRule(pattern="**/dist/**", origin=RuleOrigin.RULES),
    ]


@pytest.mark.unit
def test_parse_rules_has_no_escaping() -> None:
    rules = parse_rules("file\\#1.txt\n")

    assert rules.includes == ["file\\"]


@pytest.mark.unit
def test_parse_rules_handles_windows_line_endings() -> None:
    rules = parse_rules("a.txt\r\n!b.txt\r\n")

    assert rules.includes == ["a.txt"]
    assert rules.excludes == [ExcludeRule(pattern="b.txt")]


@pytest.mark.unit
def test_load_rules_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RulesFileNotFoundError) as exc_info:
        load_rules(tmp_path / ".flatten")

    assert "No .flatten file found" in str(exc_info.value)


@pytest.mark.unit
def test_load_rules_only_comments_is_empty(tmp_path: Path) -> None:
    rules_file = tmp_path / ".flatten"
    rules_file.write_text("# nothing here\n\n   # still nothing\n", encoding="utf-8")

    with pytest.raises(EmptyRulesFileError):
        load_rules(rules_file)


@pytest.mark.unit
def test_load_rules_reads_file(tmp_path: Path) -> None:
    rules_file = tmp_path / ".flatten"
    rules_file.write_text("src/*.py\n!src/secret.py\n", encoding="utf-8")

    rules = load_rules(rules_file)

    assert rules.includes == ["src/*.py"]
    assert rules.excludes == [ExcludeRule(pattern="src/secret.py")]


@pytest.mark.unit
def test_load_rules_rejects_non_utf8_content(tmp_path: Path) -> None:
    rules_file = tmp_path / ".flatten"
    rules_file.write_bytes(b"src/*.py\n\xff\xfe\n")

    with pytest.raises(UnreadableRulesFileError) as exc_info:
        load_rules(rules_file)

    assert "Cannot read .flatten" in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.parametrize("text", ["src/*.py\n!\n", "./\n", "src/\x00.py\n"])
def test_load_rules_rejects_unusable_patterns(tmp_path: Path, text: str) -> None:
    rules_file = tmp_path / ".flatten"
    rules_file.write_text(text, encoding="utf-8")

    with pytest.raises(InvalidPatternError):
        load_rules(rules_file)


@pytest.mark.unit
def test_load_gitignore_patterns(tmp_path: Path) -> None:
    (tmp_path / ".gitignore").write_text("# deps\nnode_modules/\n\n*.log\n!keep.log\n", encoding="utf-8")

    rules = load_gitignore_patterns(tmp_path)

    assert rules == [
        ExcludeRule(pattern="node_modules/", origin=RuleOrigin.GITIGNORE),
        ExcludeRule(pattern="*.log", origin=RuleOrigin.GITIGNORE),
    ]


@pytest.mark.unit
def test_load_gitignore_patterns_without_gitignore(tmp_path: Path) -> None:
    assert load_gitignore_patterns(tmp_path) == []


@pytest.mark.unit
def test_write_init_file_creates_template_once(tmp_path: Path) -> None:
    rules_file = tmp_path / ".flatten"

    write_init_file(rules_file)

    assert rules_file.read_text(encoding="utf-8") == INIT_TEMPLATE
    rules = load_rules(rules_file)
    assert "src/**/*.ts" in rules.includes
    assert ExcludeRule(pattern="**/node_modules/**") in rules.excludes

    with pytest.raises(RulesFileExistsError):
        write_init_file(rules_file)
