"""Detection of the test-framework dialect used by a Java file."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from .java.syntax import SourceFile
from .models import FrameworkDialect

logger = logging.getLogger(__name__)

JUNIT_PACKAGE = "org.junit"
JUNIT5_PACKAGE = "org.junit.jupiter"
TESTNG_PACKAGE = "org.testng"
SPRING_TEST_PACKAGE = "org.springframework.test"

JUNIT_CLASS_ANNOTATIONS = frozenset(
    {"SpringBootTest", "WebMvcTest", "DataJpaTest", "JsonTest"}
)
JUNIT_METHOD_ANNOTATIONS = frozenset(
    {
        "ParameterizedTest",
        "RepeatedTest",
        "TestFactory",
        "DisplayName",
        "BeforeEach",
        "AfterEach",
        "BeforeAll",
        "AfterAll",
    }
)
TESTNG_METHOD_ANNOTATIONS = frozenset(
    {
        "DataProvider",
        "BeforeMethod",
        "AfterMethod",
        "BeforeClass",
        "AfterClass",
        "BeforeTest",
        "AfterTest",
        "BeforeSuite",
        "AfterSuite",
    }
)
# Only these settle an ambiguous bare @Test.
JUNIT5_ONLY_ANNOTATIONS = frozenset(
    {"ParameterizedTest", "RepeatedTest", "TestFactory", "DisplayName"}
)
TESTNG_ONLY_ANNOTATIONS = frozenset({"DataProvider", "BeforeMethod", "AfterMethod"})
AMBIGUOUS_TEST_ANNOTATION = "Test"

Detector = Callable[[SourceFile], "FrameworkDialect | None"]


def in_package(name: str, package: str) -> bool:
    return name == package or name.startswith(package + ".")


def detect_from_imports(source_file: SourceFile) -> FrameworkDialect | None:
    """Imports are the strongest signal.

    JUnit wins over TestNG when both are imported. Spring test imports only
    count together with JUnit imports, which already decide the result.
    """
    names = source_file.import_names()
    if any(in_package(name, JUNIT_PACKAGE) for name in names):
        return FrameworkDialect.JUNIT
    if any(in_package(name, TESTNG_PACKAGE) for name in names):
        return FrameworkDialect.TESTNG
    return None


def detect_from_class_annotations(source_file: SourceFile) -> FrameworkDialect | None:
    for decl in source_file.types:
        for annotation in decl.annotations:
            if annotation.name in JUNIT_CLASS_ANNOTATIONS:
                return FrameworkDialect.JUNIT
            if annotation.name == AMBIGUOUS_TEST_ANNOTATION:
                return resolve_ambiguous_test(source_file)
    return None


def detect_from_method_annotations(source_file: SourceFile) -> FrameworkDialect | None:
    for method in source_file.methods:
        for annotation in method.annotations:
            if annotation.name in JUNIT_METHOD_ANNOTATIONS:
                return FrameworkDialect.JUNIT
            if annotation.name in TESTNG_METHOD_ANNOTATIONS:
                return FrameworkDialect.TESTNG
            if annotation.name == AMBIGUOUS_TEST_ANNOTATION:
                return resolve_ambiguous_test(source_file)
    return None


def detect_from_naming(source_file: SourceFile) -> FrameworkDialect | None:
    """Weakest signal: TestNG data provider naming."""
    for method in source_file.methods:
        if "dataProvider" in method.name or "DataProvider" in method.name:
            return FrameworkDialect.TESTNG
    return None


def resolve_ambiguous_test(source_file: SourceFile) -> FrameworkDialect:
    """Decide between JUnit and TestNG for a bare ``@Test``; JUnit by default."""
    names = source_file.import_names()
    if any(in_package(name, JUNIT5_PACKAGE) for name in names):
        return FrameworkDialect.JUNIT
    if any(in_package(name, TESTNG_PACKAGE) for name in names):
        return FrameworkDialect.TESTNG

    method_annotations = {
        a.name for method in source_file.methods for a in method.annotations
    }
    if method_annotations & JUNIT5_ONLY_ANNOTATIONS:
        return FrameworkDialect.JUNIT
    if method_annotations & TESTNG_ONLY_ANNOTATIONS:
        return FrameworkDialect.TESTNG
    return FrameworkDialect.JUNIT


DEFAULT_DETECTORS: tuple[Detector, ...] = (
    detect_from_imports,
    detect_from_class_annotations,
    detect_from_method_annotations,
    detect_from_naming,
)


class FrameworkClassifier:
    """Runs detectors in priority order; the first non-None answer wins."""

    def __init__(self, detectors: Sequence[Detector] = DEFAULT_DETECTORS):
        self.detectors = tuple(detectors)

    def classify(self, source_file: SourceFile) -> FrameworkDialect:
        for detector in self.detectors:
            dialect = detector(source_file)
            if dialect is not None:
                return dialect
        return FrameworkDialect.UNKNOWN

    def classify_file(self, source_file: SourceFile) -> FrameworkDialect:
        """Classify once and remember the result on the file."""
        if source_file.dialect is None:
            source_file.dialect = self.classify(source_file)
            logger.debug("  Framework: %s", source_file.dialect.value)
        return source_file.dialect
