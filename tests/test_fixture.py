"""Tests for fixture sessions."""

from __future__ import annotations

import os
import re
from pathlib import Path

import pytest

import inlinefs
from inlinefs import CleanupMode, ForkConflictError


@pytest.fixture
def roots(tmp_path: Path):
    """Root generator handing out root-0, root-1, ... and recording calls."""
    generated: list[str] = []

    def _generate() -> str:
        path = str(tmp_path / f"root-{len(generated)}")
        generated.append(path)
        return path

    _generate.generated = generated
    return _generate


@pytest.fixture
def create_fixture(roots):
    return inlinefs.define_creator(roots)


class TestCreate:
    def test_paths_and_files(self, create_fixture, roots):
        fx = create_fixture({"a.txt": "a", "b": {"a.txt": "b-a"}, "c/a/a.txt": "c-a-a"})
        root = roots.generated[0]
        assert fx.root_dir == root
        assert fx.paths == {
            "a.txt": os.path.join(root, "a.txt"),
            "b": os.path.join(root, "b"),
            "b/a.txt": os.path.join(root, "b/a.txt"),
            "c": os.path.join(root, "c"),
            "c/a": os.path.join(root, "c/a"),
            "c/a/a.txt": os.path.join(root, "c/a/a.txt"),
        }
        assert Path(fx.paths["c/a/a.txt"]).read_text() == "c-a-a"

    def test_generator_called_once_per_session(self, create_fixture, roots):
        create_fixture({})
        create_fixture({})
        assert len(roots.generated) == 2

    def test_override_skips_generator(self, create_fixture, roots, tmp_path: Path):
        fx = create_fixture({"a.txt": "a"}, root_dir=tmp_path / "explicit")
        assert roots.generated == []
        assert fx.root_dir == str(tmp_path / "explicit")

    def test_relative_root_is_absolute(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        fx = inlinefs.create({"a.txt": "a"}, "rel")
        assert fx.root_dir == os.path.join(os.getcwd(), "rel")
        assert Path(tmp_path, "rel/a.txt").read_text() == "a"

    def test_write_false(self, root):
        fx = inlinefs.create({"a.txt": "a"}, root, write=False)
        assert fx.paths == {"a.txt": os.path.join(root, "a.txt")}
        assert not os.path.exists(root)

    def test_invalid_name_before_cleanup(self, root):
        Path(root).mkdir()
        Path(root, "keep.txt").write_text("keep")
        with pytest.raises(inlinefs.ValidationError):
            inlinefs.create({"/a.txt": "a"}, root, cleanup="root")
        assert Path(root, "keep.txt").exists()

    def test_join(self, root):
        fx = inlinefs.create({"a.txt": "a"}, root)
        assert fx.join("a.txt") == os.path.join(root, "a.txt")
        assert fx.join("missing", "b.txt") == os.path.join(root, "missing", "b.txt")
        assert fx.join() == os.path.join(root)

    def test_mask_root_dir(self, root):
        fx = inlinefs.create({}, root)
        text = f"error in {fx.join('a.txt')}, see {root}"
        assert fx.mask_root_dir(text) == "error in <root_dir>/a.txt, see <root_dir>"
        assert fx.mask_root_dir(text, "$ROOT") == "error in $ROOT/a.txt, see $ROOT"

    def test_mask_placeholder_from_config(self, root):
        inlinefs.configure(mask_placeholder="<tmp>")
        fx = inlinefs.create({}, root)
        assert fx.mask_root_dir(root) == "<tmp>"


class TestCleanup:
    @pytest.fixture
    def stale_root(self, root):
        Path(root, "stale").mkdir(parents=True)
        Path(root, "stale/old.txt").write_text("old")
        return root

    def test_none(self, stale_root, read_tree):
        inlinefs.create({"a.txt": "a"}, stale_root, cleanup=CleanupMode.NONE)
        assert read_tree(stale_root) == {"a.txt": "a", "stale": None, "stale/old.txt": "old"}

    def test_fixtures(self, stale_root, read_tree):
        inlinefs.create({"a.txt": "a"}, stale_root, cleanup="fixtures")
        assert read_tree(stale_root) == {"a.txt": "a"}

    def test_root(self, stale_root, read_tree):
        inlinefs.create({"a.txt": "a"}, stale_root, cleanup="root")
        assert read_tree(stale_root) == {"a.txt": "a"}

    def test_missing_root(self, root):
        inlinefs.create({"a.txt": "a"}, root, cleanup="fixtures")
        assert Path(root, "a.txt").read_text() == "a"

    def test_skipped_when_not_writing(self, stale_root):
        inlinefs.create({"a.txt": "a"}, stale_root, cleanup="root", write=False)
        assert Path(stale_root, "stale/old.txt").exists()


class TestAddFixtures:
    def test_extends_paths(self, root):
        fx = inlinefs.create({"a.txt": "a"}, root)
        added = fx.add_fixtures({"b/c.txt": "b-c"})
        assert added.paths == {
            "a.txt": os.path.join(root, "a.txt"),
            "b": os.path.join(root, "b"),
            "b/c.txt": os.path.join(root, "b/c.txt"),
        }
        assert added.root_dir == root
        assert fx.paths == {"a.txt": os.path.join(root, "a.txt")}
        assert Path(root, "b/c.txt").read_text() == "b-c"

    def test_writes_even_when_creator_does_not(self, root):
        fx = inlinefs.create({"a.txt": "a"}, root, write=False)
        fx.add_fixtures({"b.txt": "b"})
        assert os.listdir(root) == ["b.txt"]

    def test_overwrites(self, root):
        fx = inlinefs.create({"a.txt": "a"}, root)
        fx.add_fixtures({"a.txt": "again"})
        assert Path(root, "a.txt").read_text() == "again"


class TestRemove:
    def test_rm_fixtures(self, root):
        fx = inlinefs.create({"a.txt": "a", "b": {"c.txt": "c"}, "d": {}}, root)
        fx.rm_fixtures()
        assert os.path.isdir(root)
        assert os.listdir(root) == []

    def test_rm_root_dir(self, root):
        fx = inlinefs.create({"a.txt": "a", "b": {"c.txt": "c"}}, root)
        fx.rm_root_dir()
        assert not os.path.exists(root)
        fx.rm_root_dir()

    def test_rm_fixtures_missing_root(self, root):
        fx = inlinefs.create({}, root, write=False)
        fx.rm_fixtures()
        assert not os.path.exists(root)


class TestFork:
    def test_fork_isolation(self, create_fixture, roots, read_tree):
        base = create_fixture({"a.txt": "a", "b/a.txt": "b-a"})
        forked = base.fork({"b/b.txt": "b-b", "d.txt": "d"})
        r1, r2 = roots.generated

        assert forked.root_dir == r2
        assert read_tree(r1) == {"a.txt": "a", "b": None, "b/a.txt": "b-a"}
        assert read_tree(r2) == {
            "a.txt": "a",
            "b": None,
            "b/a.txt": "b-a",
            "b/b.txt": "b-b",
            "d.txt": "d",
        }
        assert forked.paths == {
            "a.txt": os.path.join(r2, "a.txt"),
            "b": os.path.join(r2, "b"),
            "b/a.txt": os.path.join(r2, "b/a.txt"),
            "b/b.txt": os.path.join(r2, "b/b.txt"),
            "d.txt": os.path.join(r2, "d.txt"),
        }

    def test_fork_copies_undeclared_files(self, create_fixture):
        base = create_fixture({"a.txt": "a"})
        Path(base.join("written-by-test.log")).write_text("log")
        forked = base.fork({})
        assert Path(forked.join("written-by-test.log")).read_text() == "log"
        assert "written-by-test.log" not in forked.paths

    def test_fork_override_root(self, create_fixture, roots, tmp_path: Path):
        base = create_fixture({"a.txt": "a"})
        forked = base.fork({"b.txt": "b"}, root_dir=tmp_path / "other")
        assert forked.root_dir == str(tmp_path / "other")
        assert len(roots.generated) == 1

    def test_fork_conflict(self, create_fixture):
        base = create_fixture({"a.txt": "a"})
        with pytest.raises(ForkConflictError, match=re.escape(base.root_dir)):
            base.fork({"b.txt": "b"}, root_dir=base.root_dir)
        assert not os.path.exists(base.join("b.txt"))

    def test_fork_fixed_root_conflicts(self, root):
        fx = inlinefs.create({"a.txt": "a"}, root)
        with pytest.raises(ForkConflictError):
            fx.fork({})

    def test_fork_without_clone(self, create_fixture, read_tree):
        inlinefs.configure(clone=False)
        base = create_fixture({"a/b.txt": "b"})
        forked = base.fork({"c.txt": "c"})
        assert read_tree(forked.root_dir) == {"a": None, "a/b.txt": "b", "c.txt": "c"}

    def test_fork_of_unwritten_fixture(self, create_fixture, read_tree):
        base = create_fixture({"a.txt": "a"}, write=False)
        forked = base.fork({"b.txt": "b"})
        assert not os.path.exists(base.root_dir)
        assert read_tree(forked.root_dir) == {"b.txt": "b"}
        assert sorted(forked.paths) == ["a.txt", "b.txt"]

    def test_fork_of_fork(self, create_fixture):
        first = create_fixture({"a.txt": "a"})
        second = first.fork({"b.txt": "b"})
        third = second.fork({"c.txt": "c"})
        assert sorted(third.paths) == ["a.txt", "b.txt", "c.txt"]
        assert sorted(os.listdir(third.root_dir)) == ["a.txt", "b.txt", "c.txt"]

    def test_fork_applies_cleanup(self, roots, tmp_path: Path):
        create_fixture = inlinefs.define_creator(roots, cleanup="root")
        base = create_fixture({"a.txt": "a"})
        stale = tmp_path / "root-1"
        stale.mkdir()
        (stale / "old.txt").write_text("old")
        forked = base.fork({})
        assert sorted(os.listdir(forked.root_dir)) == ["a.txt"]


class TestReset:
    def test_reset_restores(self, root, read_tree):
        fx = inlinefs.create({"a.txt": "a", "b": {}}, root)
        Path(root, "a.txt").write_text("changed")
        Path(root, "extra.txt").write_text("extra")
        fx.reset()
        assert read_tree(root) == {"a.txt": "a", "b": None}

    def test_reset_includes_added(self, root, read_tree):
        fx = inlinefs.create({"a.txt": "a"}, root).add_fixtures({"a.txt": "a2", "c.txt": "c"})
        fx.rm_fixtures()
        fx.reset()
        assert read_tree(root) == {"a.txt": "a2", "c.txt": "c"}
