"""Tests for the tree-sitter backed Java parser."""

import pytest

from checktests.errors import ParseError
from checktests.java import JavaSourceParser, decode_string_literal, load_sources


class TestDeclarations:
    def test_package_and_imports(self, parser):
        source = """package com.example.tests;

import org.junit.jupiter.api.Test;
import static org.junit.jupiter.api.Assertions.*;
import java.util.*;

class A {}
"""
        result = parser.parse_source(source)

        assert result.package == "com.example.tests"
        assert result.package_end_line == 1
        assert [imp.name for imp in result.imports] == [
            "org.junit.jupiter.api.Test",
            "org.junit.jupiter.api.Assertions",
            "java.util",
        ]
        assert [imp.is_static for imp in result.imports] == [False, True, False]
        assert [imp.is_wildcard for imp in result.imports] == [False, True, True]
        assert result.imports[0].start_line == 3

    def test_nested_types_and_enclosing(self, parser):
        source = """
class Outer {
    void outerMethod() {}

    static class Inner {
        void innerMethod() {}
    }
}
"""
        result = parser.parse_source(source)

        assert [t.name for t in result.types] == ["Outer", "Inner"]
        inner = result.types[1]
        assert inner.parent is result.types[0]
        assert [t.name for t in inner.lineage()] == ["Outer", "Inner"]

        methods = {m.name: m for m in result.methods}
        assert methods["outerMethod"].type_name == "Outer"
        assert methods["innerMethod"].type_name == "Inner"

    def test_enum_body_methods(self, parser):
        source = """
enum Color {
    RED, GREEN;

    String label() { return name(); }
}
"""
        result = parser.parse_source(source)

        assert result.types[0].kind == "enum"
        assert [m.name for m in result.methods] == ["label"]

    def test_anonymous_and_local_classes(self, parser):
        source = """
class Outer {
    Runnable field = new Runnable() {
        public void fromField() {}
    };

    void outerMethod() {
        Runnable r = new Runnable() {
            @TestId("inner")
            public void run() {}
        };
        class Local {
            void localMethod() {}
        }
    }

    void last() {}
}
"""
        result = parser.parse_source(source)

        assert [m.name for m in result.methods] == [
            "fromField",
            "outerMethod",
            "run",
            "localMethod",
            "last",
        ]
        methods = {m.name: m for m in result.methods}
        assert methods["run"].type_name == "Outer"
        assert methods["run"].annotations[0].name == "TestId"
        assert methods["localMethod"].type_name == "Local"
        assert [t.name for t in result.types] == ["Outer", "Local"]


class TestMethods:
    def test_method_details(self, parser):
        source = """
class A {
    // smoke check @fast
    @Test
    @Tag("slow")
    public static void check(int a, String b) throws IOException, InterruptedException {
        run();
    }
}
"""
        result = parser.parse_source(source)
        method = result.methods[0]

        assert method.name == "check"
        assert [a.name for a in method.annotations] == ["Test", "Tag"]
        assert method.modifiers == ["public", "static"]
        assert method.return_type == "void"
        assert method.parameters == ["int a", "String b"]
        assert method.throws == ["IOException", "InterruptedException"]
        assert method.body.startswith("{")
        assert method.comment == "smoke check @fast"
        assert method.start_line == 4
        assert method.start_column == 4

    def test_annotation_values(self, parser):
        source = """
class A {
    @DisplayName("Adds \\"two\\" numbers")
    @Test(groups = {"smoke", "fast"}, priority = 1)
    @org.junit.jupiter.api.Disabled
    void a() {}
}
"""
        annotations = parser.parse_source(source).methods[0].annotations

        display, test, disabled = annotations
        assert display.is_single_member
        assert display.string_value() == 'Adds "two" numbers'
        assert test.value is None
        assert test.pairs["priority"] == "1"
        assert test.pairs["groups"] == '{"smoke", "fast"}'
        assert disabled.qualified_name == "org.junit.jupiter.api.Disabled"
        assert disabled.name == "Disabled"

    def test_annotation_positions(self, parser):
        source = 'class A {\n    @TestId("x1")\n    void a() {}\n}\n'
        annotation = parser.parse_source(source).methods[0].annotations[0]

        assert (annotation.start_line, annotation.start_column) == (2, 4)
        assert (annotation.end_line, annotation.end_column) == (2, 17)
        assert annotation.text == '@TestId("x1")'

    def test_columns_are_characters(self, parser):
        source = 'class A { /* é */ @Test void a() {} }\n'
        method = parser.parse_source(source).methods[0]
        assert method.start_column == source.index("@Test")

    def test_javadoc_comment(self, parser):
        source = """
class A {
    /**
     * Checks login.
     * #regression
     */
    @Test
    void login() {}
}
"""
        method = parser.parse_source(source).methods[0]
        assert method.comment == "Checks login.\n#regression"


class TestErrors:
    def test_strict_mode_rejects_syntax_errors(self, parser):
        with pytest.raises(ParseError):
            parser.parse_source("class A { void a( }")

    def test_lenient_mode_keeps_partial_result(self):
        result = JavaSourceParser(strict=False).parse_source("class A { void a() {} \n")
        assert result.has_errors

    def test_unreadable_file(self, parser, temp_dir):
        with pytest.raises(ParseError):
            parser.parse_file(temp_dir / "Missing.java")

    def test_invalid_utf8(self, parser, temp_dir):
        path = temp_dir / "Bad.java"
        path.write_bytes(b"class A { String s = \"\xff\"; }")
        with pytest.raises(ParseError, match="UTF-8"):
            parser.parse_file(path)


class TestLoadSources:
    def test_collects_failures(self, parser, temp_dir):
        good = temp_dir / "Good.java"
        good.write_text("class Good {}\n")
        bad = temp_dir / "Bad.java"
        bad.write_text("class Bad {\n")

        files, failures = load_sources([good, bad], parser)

        assert [f.path.name for f in files] == ["Good.java"]
        assert len(failures) == 1
        assert failures[0].path.endswith("Bad.java")

    def test_parallel_keeps_input_order(self, parser, temp_dir):
        paths = []
        for i in range(6):
            path = temp_dir / f"C{i}.java"
            path.write_text(f"class C{i} {{}}\n")
            paths.append(path)

        files, failures = load_sources(paths, parser, workers=3)

        assert failures == []
        assert [f.types[0].name for f in files] == [f"C{i}" for i in range(6)]


class TestDecodeStringLiteral:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ('"abc"', "abc"),
            ('"a\\tb"', "a\tb"),
            ('"say \\"hi\\""', 'say "hi"'),
            ("CONSTANT", None),
            ('"""block"""', None),
        ],
    )
    def test_decode(self, text, expected):
        assert decode_string_literal(text) == expected
