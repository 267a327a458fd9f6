#!/usr/bin/env python3
"""
Tests for loading layered ignore files and evaluating verdicts
"""

import logging
import os

import pytest

from codeprompt.ignore import IGNORE_FILENAME, IgnoreEvaluator, IgnoreFileLoader, relativize


def test_load_rejects_missing_roots(tmp_path):
    """No evaluator for missing, non-directory or empty roots"""
    (tmp_path / "file.txt").write_text("x")

    assert IgnoreEvaluator.load(None) is None
    assert IgnoreEvaluator.load("") is None
    assert IgnoreEvaluator.load("   ") is None
    assert IgnoreEvaluator.load(tmp_path / "missing") is None
    assert IgnoreEvaluator.load(tmp_path / "file.txt") is None


def test_no_ignore_files_ignores_nothing(tmp_path):
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator is not None
    assert evaluator.rules == ()
    assert evaluator.root_path == tmp_path.resolve()
    assert not evaluator.is_ignored(tmp_path / "anything.log", False)
    assert not evaluator.is_ignored(tmp_path / "dir", True)


def test_root_is_never_ignored(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "**\n*\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert not evaluator.is_ignored(tmp_path, True)
    assert not evaluator.is_ignored(str(tmp_path) + "/", True)
    assert evaluator.is_ignored(tmp_path / "a.txt", False)


def test_paths_outside_root_are_not_ignored(make_tree, tmp_path):
    root = make_tree({f"proj/{IGNORE_FILENAME}": "*.txt\n"}) / "proj"
    evaluator = IgnoreEvaluator.load(root)

    assert evaluator.is_ignored(root / "inside.txt", False)
    assert not evaluator.is_ignored(tmp_path / "outside.txt", False)
    assert not evaluator.is_ignored(tmp_path / "proj2" / "x.txt", False)


def test_relative_candidates_resolve_against_root(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "*.log\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored("debug.log", False)
    assert evaluator.is_ignored("nested/debug.log", False)
    assert not evaluator.is_ignored("../debug.log", False)


def test_root_anchoring(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "/build\n"})
    anchored = IgnoreEvaluator.load(tmp_path)

    assert anchored.is_ignored(tmp_path / "build", True)
    assert not anchored.is_ignored(tmp_path / "sub" / "build", True)

    make_tree({IGNORE_FILENAME: "build\n"})
    unanchored = IgnoreEvaluator.load(tmp_path)

    assert unanchored.is_ignored(tmp_path / "build", True)
    assert unanchored.is_ignored(tmp_path / "sub" / "build", True)


def test_directory_only_rules(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "logs/\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored(tmp_path / "logs", True)
    assert evaluator.is_ignored(tmp_path / "logs" / "2024", True)
    assert evaluator.is_ignored(tmp_path / "app" / "logs", True)
    assert evaluator.is_ignored(str(tmp_path / "logs") + "/", True)
    assert not evaluator.is_ignored(tmp_path / "logs", False)


def test_double_star(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "**/temp\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored(tmp_path / "temp", False)
    assert evaluator.is_ignored(tmp_path / "a" / "temp", False)
    assert evaluator.is_ignored(tmp_path / "a" / "b" / "temp", True)


def test_negation_last_match_wins(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "*.log\n!keep.log\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored(tmp_path / "debug.log", False)
    assert not evaluator.is_ignored(tmp_path / "keep.log", False)

    make_tree({IGNORE_FILENAME: "!keep.log\n*.log\n"})
    reversed_order = IgnoreEvaluator.load(tmp_path)

    assert reversed_order.is_ignored(tmp_path / "keep.log", False)


def test_rules_are_scoped_to_their_directory(make_tree, tmp_path):
    make_tree({
        f"sub/{IGNORE_FILENAME}": "foo\n",
        "other/": "",
    })
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored(tmp_path / "sub" / "foo", False)
    assert evaluator.is_ignored(tmp_path / "sub" / "deep" / "foo", False)
    assert not evaluator.is_ignored(tmp_path / "other" / "foo", False)
    assert not evaluator.is_ignored(tmp_path / "foo", False)


def test_deeper_rules_override_shallower(make_tree, tmp_path):
    make_tree({
        IGNORE_FILENAME: "*.txt\n",
        f"docs/{IGNORE_FILENAME}": "!keep.txt\n",
    })
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored(tmp_path / "keep.txt", False)
    assert evaluator.is_ignored(tmp_path / "docs" / "notes.txt", False)
    assert not evaluator.is_ignored(tmp_path / "docs" / "keep.txt", False)


def test_character_classes(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "file[0-9].txt\ndata[!0-9].csv\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator.is_ignored(tmp_path / "file3.txt", False)
    assert not evaluator.is_ignored(tmp_path / "fileA.txt", False)
    assert evaluator.is_ignored(tmp_path / "dataA.csv", False)
    assert not evaluator.is_ignored(tmp_path / "data3.csv", False)


def test_reload_is_idempotent(make_tree, tmp_path):
    make_tree({
        IGNORE_FILENAME: "*.tmp\n!keep.tmp\nbuild/\n",
        f"src/{IGNORE_FILENAME}": "/generated\n",
    })
    first = IgnoreEvaluator.load(tmp_path)
    second = IgnoreEvaluator.load(tmp_path)

    queries = [
        ("a.tmp", False), ("keep.tmp", False), ("build", True),
        ("src/generated", True), ("src/x/generated", True), ("src/main.txt", False),
    ]
    for relative, is_directory in queries:
        path = tmp_path / relative
        assert first.is_ignored(path, is_directory) == second.is_ignored(path, is_directory)

    assert [r.pattern for r in first.rules] == [r.pattern for r in second.rules]


def test_explain_reports_deciding_rule(make_tree, tmp_path):
    make_tree({
        IGNORE_FILENAME: "*.log\n",
        f"sub/{IGNORE_FILENAME}": "!keep.log\n",
    })
    evaluator = IgnoreEvaluator.load(tmp_path)

    ignored = evaluator.explain(tmp_path / "a.log", False)
    assert ignored.should_ignore
    assert ignored.relative_path == "a.log"
    assert ignored.matched_pattern == "*.log"
    assert ignored.matched_scope == ""

    kept = evaluator.explain(tmp_path / "sub" / "keep.log", False)
    assert not kept.should_ignore
    assert kept.matched_pattern == "!keep.log"
    assert kept.matched_scope == "sub"

    untouched = evaluator.explain(tmp_path / "main.py", False)
    assert not untouched.should_ignore
    assert untouched.matched_rule is None


def test_unreadable_ignore_file_is_skipped(make_tree, tmp_path):
    make_tree({
        IGNORE_FILENAME: "*.log\n",
        f"sub/{IGNORE_FILENAME}": b"\xff\xfe\xfa not utf-8\n",
    })
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator is not None
    assert len(evaluator.rules) == 1
    assert evaluator.is_ignored(tmp_path / "sub" / "a.log", False)


def test_oversized_ignore_file_is_skipped(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "*.log\n*.tmp\n"})
    evaluator = IgnoreEvaluator.load(tmp_path, max_file_size=4)

    assert evaluator.rules == ()
    assert not evaluator.is_ignored(tmp_path / "a.log", False)


def test_size_limit_can_be_disabled(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "*.log\n*.tmp\n"})
    evaluator = IgnoreEvaluator.load(tmp_path, max_file_size=0)

    assert len(evaluator.rules) == 2
    assert evaluator.is_ignored(tmp_path / "a.tmp", False)


def test_every_rule_in_a_large_file_is_kept(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "".join(f"file{i}.tmp\n" for i in range(10050))})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert len(evaluator.rules) == 10050
    assert evaluator.is_ignored(tmp_path / "file10049.tmp", False)


def test_unlistable_subdirectory_is_skipped(make_tree, tmp_path, monkeypatch):
    make_tree({
        IGNORE_FILENAME: "*.log\n",
        f"locked/{IGNORE_FILENAME}": "*.tmp\n",
        f"open/{IGNORE_FILENAME}": "*.bak\n",
    })
    locked = str(tmp_path.resolve() / "locked")
    real_scandir = os.scandir

    def fake_scandir(path):
        if os.fspath(path) == locked:
            raise PermissionError(13, "Permission denied", locked)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)

    evaluator = IgnoreEvaluator.load(tmp_path)

    assert evaluator is not None
    assert [rule.pattern for rule in evaluator.rules] == ["*.log", "*.bak"]
    assert evaluator.is_ignored(tmp_path / "a.log", False)
    assert evaluator.is_ignored(tmp_path / "open" / "a.bak", False)
    assert not evaluator.is_ignored(tmp_path / "locked" / "a.tmp", False)


def test_custom_ignore_filename(make_tree, tmp_path):
    make_tree({
        IGNORE_FILENAME: "*.log\n",
        ".promptignore": "*.tmp\n",
    })
    evaluator = IgnoreEvaluator.load(tmp_path, ignore_filename=".promptignore")

    assert evaluator.is_ignored(tmp_path / "a.tmp", False)
    assert not evaluator.is_ignored(tmp_path / "a.log", False)


def test_get_stats(make_tree, tmp_path):
    make_tree({
        IGNORE_FILENAME: "*.log\n!keep.log\nbuild/\n",
        f"a/{IGNORE_FILENAME}": "# only a comment\n",
    })
    stats = IgnoreEvaluator.load(tmp_path).get_stats()

    assert stats['ignore_files'] == 2
    assert stats['rules'] == 3
    assert stats['negation_rules'] == 1
    assert stats['directory_only_rules'] == 1


def test_find_ignore_files_order(make_tree, tmp_path):
    make_tree({
        f"b/{IGNORE_FILENAME}": "",
        f"a/x/{IGNORE_FILENAME}": "",
        f"A2/{IGNORE_FILENAME}": "",
        f"a/{IGNORE_FILENAME}": "",
        IGNORE_FILENAME: "",
    })
    found = IgnoreFileLoader().find_ignore_files(tmp_path)

    relative = [path.relative_to(tmp_path).as_posix() for path in found]
    assert relative == [
        IGNORE_FILENAME,
        f"a/{IGNORE_FILENAME}",
        f"A2/{IGNORE_FILENAME}",
        f"b/{IGNORE_FILENAME}",
        f"a/x/{IGNORE_FILENAME}",
    ]


def test_load_file_stats_and_scope(make_tree, tmp_path):
    make_tree({
        f"sub/{IGNORE_FILENAME}": "\ufeff# header\n\n*.log\n!\n/\nbuild/\n",
    })
    loader = IgnoreFileLoader()
    path = tmp_path / "sub" / IGNORE_FILENAME
    info = loader.load_file(path, loader.scope_for(tmp_path, path))

    assert info.is_valid
    assert info.scope_directory == "sub"
    assert info.patterns == ["*.log", "build/"]
    assert [rule.scope_directory for rule in info.rules] == ["sub", "sub"]
    assert info.stats == {
        'total_lines': 6,
        'empty_lines': 1,
        'comment_lines': 1,
        'pattern_lines': 4,
        'discarded_lines': 2,
    }


def test_load_file_missing(tmp_path):
    info = IgnoreFileLoader().load_file(tmp_path / IGNORE_FILENAME)

    assert not info.is_valid
    assert info.rules == []


@pytest.mark.parametrize("candidate, expected", [
    ("a/b.txt", "a/b.txt"),
    ("a/b/", "a/b"),
    (".", ""),
    ("", ""),
    ("../x", None),
])
def test_relativize(tmp_path, candidate, expected):
    assert relativize(tmp_path, candidate) == expected
    if candidate:
        assert relativize(tmp_path, str(tmp_path / candidate)) == expected


def test_evaluator_is_read_only(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: "*.log\n"})
    evaluator = IgnoreEvaluator.load(tmp_path)

    assert isinstance(evaluator.rules, tuple)
    with pytest.raises(AttributeError):
        evaluator.rules = ()
    with pytest.raises(Exception):
        evaluator.rules[0].is_negation = True


def test_lines_split_only_on_line_breaks(make_tree, tmp_path):
    make_tree({IGNORE_FILENAME: b"*.log\r\n*.tmp\x0c*.bak\r*.old\x1c*.new\n"})
    loader = IgnoreFileLoader()
    info = loader.load_file(tmp_path / IGNORE_FILENAME)

    assert info.patterns == ["*.log", "*.tmp\x0c*.bak", "*.old\x1c*.new"]
    assert info.stats['total_lines'] == 3


def test_load_logs_structured_summary(make_tree, tmp_path, caplog):
    make_tree({IGNORE_FILENAME: "*.log\n*.tmp\n"})

    with caplog.at_level(logging.INFO, logger='codeprompt.ignore.evaluator'):
        IgnoreEvaluator.load(tmp_path)

    record = next(r for r in caplog.records if r.getMessage().startswith("Loaded"))
    assert record.extra == {'root': str(tmp_path.resolve()), 'rules': 2, 'ignore_files': 1}
