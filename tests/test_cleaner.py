"""Tests for AnnotationCleaner."""

from checktests.cleaner import AnnotationCleaner
from checktests.reconciler import MARKER_IMPORT

MARKED = f"""package p;

import org.junit.jupiter.api.Test;
import {MARKER_IMPORT};

class A {{
    @TestId("one")
    @Test
    void a() {{}}

    @TestId("two")
    @Test
    void b() {{}}
}}
"""

CLEAN = """package p;

import org.junit.jupiter.api.Test;

class A {
    @Test
    void a() {}

    @Test
    void b() {}
}
"""


class TestClean:
    def test_removes_everything(self, parser, java_project):
        path = java_project.write("p/A.java", MARKED)

        result = AnnotationCleaner().clean(parser.parse_file(path))

        assert result.as_tuple() == (2, 1)
        assert path.read_text() == CLEAN

    def test_dry_run_counts_without_writing(self, parser, java_project):
        path = java_project.write("p/A.java", MARKED)

        result = AnnotationCleaner().clean(parser.parse_file(path), dry_run=True)

        assert result.as_tuple() == (2, 1)
        assert path.read_text() == MARKED

    def test_marker_filter_keeps_others(self, parser, java_project):
        path = java_project.write("p/A.java", MARKED)

        result = AnnotationCleaner().clean(parser.parse_file(path), markers={"two"})

        assert result.as_tuple() == (1, 0)
        text = path.read_text()
        assert '@TestId("one")' in text
        assert '@TestId("two")' not in text
        assert f"import {MARKER_IMPORT};" in text

    def test_marker_in_anonymous_class_keeps_import(self, parser, java_project):
        path = java_project.write(
            "p/A.java",
            f"""package p;

import org.junit.jupiter.api.Test;
import {MARKER_IMPORT};

class A {{
    @TestId("one")
    @Test
    void a() {{
        Runnable r = new Runnable() {{
            @TestId("inner")
            public void run() {{}}
        }};
    }}
}}
""",
        )

        result = AnnotationCleaner().clean(parser.parse_file(path), markers={"one"})

        assert result.as_tuple() == (1, 0)
        text = path.read_text()
        assert '@TestId("inner")' in text
        assert f"import {MARKER_IMPORT};" in text

    def test_purge_reaches_anonymous_classes(self, parser, java_project):
        path = java_project.write(
            "p/A.java",
            f"""import {MARKER_IMPORT};
class A {{
    void a() {{
        Runnable r = new Runnable() {{
            @TestId("inner")
            public void run() {{}}
        }};
    }}
}}
""",
        )

        result = AnnotationCleaner().clean(parser.parse_file(path))

        assert result.as_tuple() == (1, 1)
        assert "TestId" not in path.read_text()

    def test_clean_file_is_untouched(self, parser, java_project):
        path = java_project.write("p/A.java", CLEAN)

        result = AnnotationCleaner().clean(parser.parse_file(path))

        assert result.as_tuple() == (0, 0)
        assert path.read_text() == CLEAN


class TestCleanFiles:
    def test_aggregates_counts(self, parser, java_project):
        first = java_project.write("p/A.java", MARKED)
        second = java_project.write("p/B.java", CLEAN.replace("class A", "class B"))
        files = [parser.parse_file(first), parser.parse_file(second)]

        total = AnnotationCleaner().clean_files(files)

        assert (total.total_annotations, total.total_imports) == (2, 1)
        assert total.modified_files == 1
        assert total.failed_files == []

    def test_write_failure_does_not_stop_the_rest(self, parser, java_project):
        broken = java_project.write("p/A.java", MARKED)
        other = java_project.write("p/B.java", MARKED.replace("class A", "class B"))
        files = [parser.parse_file(broken), parser.parse_file(other)]
        broken.unlink()
        broken.mkdir()

        total = AnnotationCleaner().clean_files(files)

        assert len(total.failed_files) == 1
        assert total.modified_files == 1
        assert "TestId" not in other.read_text()
