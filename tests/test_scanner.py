"""Tests for SourceTreeScanner."""

import os

import pytest

from checktests.errors import DirectoryError
from checktests.scanner import (
    ScanProfile,
    SourceTreeScanner,
    matches_test_naming,
    should_skip_directory,
)


def touch(path, content="class A {}\n"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestScanRoot:
    def test_missing_directory(self, temp_dir):
        with pytest.raises(DirectoryError, match="does not exist"):
            SourceTreeScanner().scan(temp_dir / "missing")

    def test_file_is_not_a_directory(self, temp_dir):
        path = touch(temp_dir / "A.java")
        with pytest.raises(DirectoryError, match="not a directory"):
            SourceTreeScanner().scan(path)

    def test_empty_directory(self, temp_dir):
        assert SourceTreeScanner().scan(temp_dir) == []


class TestFiltering:
    def test_finds_nested_sources(self, temp_dir):
        a = touch(temp_dir / "src" / "test" / "java" / "com" / "ATest.java")
        b = touch(temp_dir / "module" / "B.java")
        touch(temp_dir / "README.md")

        found = set(SourceTreeScanner().scan(temp_dir))

        assert found == {a.absolute(), b.absolute()}

    def test_skips_build_and_hidden_directories(self, temp_dir):
        kept = touch(temp_dir / "src" / "KeptTest.java")
        for name in ("target", "build", "out", "bin", "classes", "node_modules", ".git", ".idea"):
            touch(temp_dir / name / "SkippedTest.java")

        found = SourceTreeScanner().scan(temp_dir)

        assert found == [kept.absolute()]

    def test_test_naming_profile(self, temp_dir):
        touch(temp_dir / "FooTest.java")
        touch(temp_dir / "FooTests.java")
        touch(temp_dir / "TestBar.java")
        touch(temp_dir / "Helper.java")

        found = SourceTreeScanner(ScanProfile.TEST_NAMING).scan(temp_dir)

        assert sorted(p.name for p in found) == ["FooTest.java", "FooTests.java", "TestBar.java"]

    def test_permissive_profile_accepts_any_source(self, temp_dir):
        touch(temp_dir / "Helper.java")
        found = SourceTreeScanner(ScanProfile.PERMISSIVE).scan(temp_dir)
        assert [p.name for p in found] == ["Helper.java"]

    def test_profile_from_string(self):
        assert SourceTreeScanner("test-naming").profile is ScanProfile.TEST_NAMING

    def test_iter_files_can_stop_early(self, temp_dir):
        for i in range(5):
            touch(temp_dir / f"F{i}Test.java")
        iterator = SourceTreeScanner().iter_files(temp_dir)
        first = next(iterator)
        assert first.name.endswith(".java")


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
class TestSymlinks:
    def test_directory_link_outside_project_is_ignored(self, temp_dir):
        outside = temp_dir / "outside"
        touch(outside / "SecretTest.java")
        project = temp_dir / "project"
        kept = touch(project / "src" / "KeptTest.java")
        (project / "src" / "linked").symlink_to(outside, target_is_directory=True)

        found = SourceTreeScanner().scan(project)

        assert found == [kept.absolute()]

    def test_refused_link_does_not_hide_its_target(self, temp_dir):
        project = temp_dir / "project"
        (project / "a").mkdir(parents=True)
        real = touch(project / "b" / "RealTest.java")
        (project / "a" / "link").symlink_to(project / "b", target_is_directory=True)

        found = SourceTreeScanner().scan(project)

        assert found == [real.absolute()]

    def test_file_link_outside_project_is_ignored(self, temp_dir):
        secret = touch(temp_dir / "outside" / "SecretTest.java")
        project = temp_dir / "project"
        project.mkdir()
        (project / "LinkTest.java").symlink_to(secret)

        assert SourceTreeScanner().scan(project) == []

    def test_symlink_cycle_terminates(self, temp_dir):
        project = temp_dir / "project"
        kept = touch(project / "pkg" / "ATest.java")
        (project / "pkg" / "loop").symlink_to(project / "pkg", target_is_directory=True)

        found = SourceTreeScanner().scan(project)

        assert found == [kept.absolute()]

    def test_link_inside_parent_is_followed(self, temp_dir):
        project = temp_dir / "project"
        real = touch(project / "real" / "inner" / "ATest.java")
        (project / "real" / "alias").symlink_to(project / "real" / "inner", target_is_directory=True)

        found = SourceTreeScanner().scan(project)

        # visited set keeps the aliased directory from being walked twice
        assert len(found) == 1
        assert found[0].resolve() == real.resolve()


class TestHelpers:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("FooTest.java", True),
            ("FooTests.java", True),
            ("TestFoo.java", True),
            ("Foo.java", False),
            ("FooTest.kt", False),
        ],
    )
    def test_matches_test_naming(self, name, expected):
        assert matches_test_naming(name) is expected

    @pytest.mark.parametrize(
        "name,expected",
        [("target", True), (".git", True), ("src", False), ("builds", False)],
    )
    def test_should_skip_directory(self, name, expected):
        assert should_skip_directory(name) is expected
