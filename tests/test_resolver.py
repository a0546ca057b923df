"""Tests for project storage resolution and bounded directory walks."""

import pytest

from project_history.resolver import (
    ScanTimeout,
    project_folder_name,
    resolve_project_dirs,
    walk_files,
)


def test_project_folder_name():
    assert project_folder_name("/mnt/private1/ai-projects/foo") == "mnt-private1-ai-projects-foo"
    assert project_folder_name("/home/me/app/") == "home-me-app"


def test_exact_match_wins(tmp_path):
    base = tmp_path / "projects"
    (base / "home-me-app").mkdir(parents=True)
    (base / "other-app-copy").mkdir()

    assert resolve_project_dirs("/home/me/app", base) == [base / "home-me-app"]


def test_exact_match_on_parent_directory(tmp_path):
    base = tmp_path / "projects"
    (base / "home-me-app").mkdir(parents=True)
    (base / "home-me").mkdir()

    assert resolve_project_dirs("/home/me/app/src/components", base) == [base / "home-me-app"]


def test_parent_search_is_bounded(tmp_path):
    base = tmp_path / "projects"
    (base / "home-me-app").mkdir(parents=True)
    (base / "other-e").mkdir()

    # Five levels below the project: no exact match, so fuzzy candidates only.
    matches = resolve_project_dirs("/home/me/app/a/b/c/d/e", base)
    assert matches == [base / "home-me-app", base / "other-e"]
    assert resolve_project_dirs("/srv/x/y/z/w/v", base) == []


def test_fuzzy_match_ranks_last_two_segments_first(tmp_path):
    base = tmp_path / "projects"
    (base / "Users-me-work-app").mkdir(parents=True)
    (base / "Archive-WORK").mkdir()
    (base / "unrelated").mkdir()
    (base / "stray-file-work").write_text("not a dir")

    matches = resolve_project_dirs("/home/me/work", base)
    assert matches == [base / "Users-me-work-app", base / "Archive-WORK"]


def test_missing_base_dir(tmp_path):
    assert resolve_project_dirs("/home/me/app", tmp_path / "nope") == []


def test_empty_project_path(tmp_path):
    assert resolve_project_dirs("/", tmp_path) == []


def test_walk_files_prunes_ignored_dirs(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "one.md").write_text("x")
    (tmp_path / "a" / "two.txt").write_text("x")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "three.md").write_text("x")
    (tmp_path / "Four.MD").write_text("x")

    found = sorted(p.name for p in walk_files(tmp_path, {".md"}))
    assert found == ["Four.MD", "one.md"]


def test_walk_files_timeout(tmp_path):
    (tmp_path / "one.md").write_text("x")
    with pytest.raises(ScanTimeout):
        list(walk_files(tmp_path, {".md"}, timeout=-1))
