"""Extraction of test records from classified Java files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from .java.syntax import Annotation, MethodDecl, SourceFile
from .models import FrameworkDialect, TestIdentity, TestRecord
from .utils import SOURCE_EXTENSION, relative_file_path

COMMENT_LABEL_PATTERN = re.compile(r"@(\w+)(?::(\w+))?|#(\w+)")
NAME_KEYWORDS = ("integration", "smoke", "performance", "acceptance", "regression")
SKIP_ANNOTATIONS = frozenset({"Disabled", "Ignore"})
SKIP_PREFIXES = ("ignore", "skip")

_LIFECYCLE = "lifecycle"


@dataclass(frozen=True)
class DialectVocabulary:
    """Annotation vocabulary of one framework dialect.

    Attributes:
        test_annotations: Annotations that make a method a test.
        labels: Annotation name -> label.
        value_labels: Annotations whose own string value is the label (``@Tag``).
        list_labels: Annotation name -> attribute holding comma-separated labels.
    """

    test_annotations: frozenset[str]
    labels: dict[str, str]
    value_labels: frozenset[str] = frozenset()
    list_labels: dict[str, str] = field(default_factory=dict)


VOCABULARIES: dict[FrameworkDialect, DialectVocabulary] = {
    FrameworkDialect.JUNIT: DialectVocabulary(
        test_annotations=frozenset(
            {"Test", "ParameterizedTest", "RepeatedTest", "TestFactory"}
        ),
        labels={
            "Test": "unit",
            "IntegrationTest": "integration",
            "SpringBootTest": "integration",
            "ParameterizedTest": "parameterized",
            "RepeatedTest": "repeated",
            "TestFactory": "dynamic",
            "Disabled": "disabled",
            "Ignore": "disabled",
            "Timeout": "timeout",
            "WebMvcTest": "web",
            "DataJpaTest": "jpa",
            "JsonTest": "json",
        },
        value_labels=frozenset({"Tag"}),
    ),
    FrameworkDialect.TESTNG: DialectVocabulary(
        test_annotations=frozenset({"Test"}),
        labels={
            "Test": "unit",
            "DataProvider": "parameterized",
            "BeforeMethod": _LIFECYCLE,
            "AfterMethod": _LIFECYCLE,
            "BeforeClass": _LIFECYCLE,
            "AfterClass": _LIFECYCLE,
            "BeforeTest": _LIFECYCLE,
            "AfterTest": _LIFECYCLE,
            "BeforeSuite": _LIFECYCLE,
            "AfterSuite": _LIFECYCLE,
        },
        list_labels={"Test": "groups"},
    ),
}


class TestIdentityExtractor:
    """Selects test methods and describes each as a :class:`TestRecord`."""

    __test__ = False

    def __init__(
        self,
        vocabularies: dict[FrameworkDialect, DialectVocabulary] | None = None,
        extension: str = SOURCE_EXTENSION,
    ):
        self.vocabularies = vocabularies if vocabularies is not None else VOCABULARIES
        self.extension = extension

    def extract(
        self,
        source_file: SourceFile,
        dialect: FrameworkDialect | None = None,
        filepath: str | Path | None = None,
    ) -> list[TestRecord]:
        """
        Build records for every test method in the file.

        Args:
            source_file: Parsed file.
            dialect: Dialect to apply; defaults to the file's classification.
            filepath: Path to report; defaults to the file's own path.

        Returns:
            Records in declaration order; empty for UNKNOWN dialects.
        """
        dialect = dialect or source_file.dialect or FrameworkDialect.UNKNOWN
        vocabulary = self.vocabularies.get(dialect)
        if vocabulary is None:
            return []

        if filepath is None and source_file.path is not None:
            filepath = source_file.path
        file = relative_file_path(str(filepath) if filepath else None, self.extension)

        return [
            self._record(method, vocabulary, file)
            for method in source_file.methods
            if self.is_test_method(method, vocabulary)
        ]

    def identities(
        self, source_file: SourceFile, dialect: FrameworkDialect | None = None
    ) -> list[TestIdentity]:
        return [r.identity for r in self.extract(source_file, dialect)]

    @staticmethod
    def is_test_method(method: MethodDecl, vocabulary: DialectVocabulary) -> bool:
        return any(a.name in vocabulary.test_annotations for a in method.annotations)

    def _record(
        self, method: MethodDecl, vocabulary: DialectVocabulary, file: str
    ) -> TestRecord:
        return TestRecord(
            identity=TestIdentity(
                file_path=file,
                type_name=method.type_name or "",
                method_name=method.name,
            ),
            name=display_name(method),
            suites=suites(method),
            skipped=is_skipped(method),
            labels=labels(method, vocabulary),
            code=method_code(method),
            file=file,
        )


def display_name(method: MethodDecl) -> str:
    annotation = method.annotation("DisplayName")
    if annotation is not None:
        value = annotation.string_value()
        if value is not None:
            return value
    return method.name


def suites(method: MethodDecl) -> tuple[str, ...]:
    """Enclosing type display names, outermost first."""
    if method.enclosing is None:
        return ()
    return tuple(decl.display_name for decl in method.enclosing.lineage())


def is_skipped(method: MethodDecl) -> bool:
    if any(a.name in SKIP_ANNOTATIONS for a in method.annotations):
        return True
    return method.name.startswith(SKIP_PREFIXES)


def labels(method: MethodDecl, vocabulary: DialectVocabulary) -> tuple[str, ...]:
    found: list[str] = []
    for annotation in method.annotations:
        found.extend(annotation_labels(annotation, vocabulary))
    found.extend(comment_labels(method.comment))
    found.extend(name_labels(method.name))
    # ordered set
    return tuple(dict.fromkeys(label for label in found if label))


def annotation_labels(annotation: Annotation, vocabulary: DialectVocabulary) -> list[str]:
    name = annotation.name
    result: list[str] = []

    if name in vocabulary.labels:
        result.append(vocabulary.labels[name])
    elif name in vocabulary.value_labels:
        value = annotation.string_value()
        if value is not None:
            result.append(value)
    elif name.endswith("Test"):
        result.append(name.lower().replace("test", ""))

    attribute = vocabulary.list_labels.get(name)
    if attribute is not None and attribute in annotation.pairs:
        raw = re.sub(r'["{}\[\]]', "", annotation.pairs[attribute])
        result.extend(token.strip() for token in raw.split(","))

    return result


def comment_labels(comment: str | None) -> list[str]:
    """Tags written as ``@tag``, ``@tag:value`` or ``#tag`` in a comment."""
    if not comment:
        return []
    result: list[str] = []
    for match in COMMENT_LABEL_PATTERN.finditer(comment):
        if match.group(3) is not None:
            result.append(match.group(3))
        elif match.group(2) is not None:
            result.append(f"{match.group(1)}:{match.group(2)}")
        else:
            result.append(match.group(1))
    return result


def name_labels(method_name: str) -> list[str]:
    lowered = method_name.lower()
    return [keyword for keyword in NAME_KEYWORDS if keyword in lowered]


def method_code(method: MethodDecl) -> str:
    """Readable reconstruction of the method's signature and body."""
    parts: list[str] = [f"{a.text}\n" for a in method.annotations]
    parts.extend(f"{m} " for m in method.modifiers)
    parts.append(f"{method.return_type} {method.name}(")
    parts.append(", ".join(method.parameters))
    parts.append(")")
    if method.throws:
        parts.append(" throws " + ", ".join(method.throws))
    if method.body is not None:
        parts.append(" " + method.body)
    return "".join(parts)
