"""Syntax model for parsed Java source files.

These are the only tree shapes the rest of the package sees. Positions follow
two conventions: lines are 1-based (like an editor), columns are 0-based
character offsets within the line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import FrameworkDialect


def decode_string_literal(text: str) -> str | None:
    """Decode a Java string literal (``"a\\"b"``) into its value.

    Returns None if the text is not a plain string literal.
    """
    text = text.strip()
    if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
        return None
    if text.startswith('"""'):
        return None
    body = text[1:-1]
    escapes = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f",
               "s": " ", '"': '"', "'": "'", "\\": "\\"}
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(escapes.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


@dataclass(eq=False)
class ImportDecl:
    """An ``import`` statement."""

    name: str  # "org.junit.jupiter.api.Test" (without ".*")
    is_static: bool
    is_wildcard: bool
    start_line: int
    end_line: int
    start_column: int = 0
    end_column: int = 0


@dataclass(eq=False)
class Annotation:
    """An annotation on a type or method.

    Attributes:
        qualified_name: Name as written, e.g. "Test" or "org.junit.Test".
        text: Verbatim source text of the annotation.
        value: Raw text of a single-member argument (``@Tag("x")`` -> ``"x"``),
            None for marker or named-pair annotations.
        pairs: Raw text of named arguments (``@Test(groups = "a")``).
    """

    qualified_name: str
    text: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    value: str | None = None
    pairs: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Simple name (last segment of the qualified name)."""
        return self.qualified_name.rsplit(".", 1)[-1]

    @property
    def is_single_member(self) -> bool:
        return self.value is not None

    def string_value(self) -> str | None:
        """Decoded string of the single value, or of the ``value`` pair."""
        raw = self.value if self.value is not None else self.pairs.get("value")
        if raw is None:
            return None
        return decode_string_literal(raw)


@dataclass(eq=False)
class TypeDecl:
    """A class, interface, enum, record, or annotation type declaration."""

    name: str
    kind: str  # "class"|"interface"|"enum"|"record"|"annotation"
    annotations: list[Annotation]
    start_line: int
    end_line: int
    parent: TypeDecl | None = None

    def annotation(self, name: str) -> Annotation | None:
        return next((a for a in self.annotations if a.name == name), None)

    @property
    def display_name(self) -> str:
        display = self.annotation("DisplayName")
        if display is not None:
            value = display.string_value()
            if value is not None:
                return value
        return self.name

    def lineage(self) -> list[TypeDecl]:
        """Enclosing chain from the outermost type down to this one."""
        chain: list[TypeDecl] = []
        current: TypeDecl | None = self
        while current is not None:
            chain.append(current)
            current = current.parent
        chain.reverse()
        return chain


@dataclass(eq=False)
class MethodDecl:
    """A method declaration, with enough detail to rebuild its signature."""

    name: str
    annotations: list[Annotation]
    modifiers: list[str]
    return_type: str
    parameters: list[str]
    throws: list[str]
    body: str | None
    start_line: int  # includes leading annotations/modifiers
    start_column: int
    end_line: int
    enclosing: TypeDecl | None = None
    comment: str | None = None

    def annotation(self, name: str) -> Annotation | None:
        return next((a for a in self.annotations if a.name == name), None)

    def has_annotation(self, name: str) -> bool:
        return self.annotation(name) is not None

    @property
    def type_name(self) -> str | None:
        """Name of the nearest enclosing type."""
        return self.enclosing.name if self.enclosing else None


@dataclass(eq=False)
class SourceFile:
    """A parsed Java file.

    ``lines`` stays None until patching starts; ``dialect`` is set once by
    classification and never changed afterwards.
    """

    path: Path | None
    source: str
    package: str | None = None
    package_end_line: int | None = None
    imports: list[ImportDecl] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    methods: list[MethodDecl] = field(default_factory=list)
    has_errors: bool = False
    dialect: FrameworkDialect | None = None
    lines: list[str] | None = None

    @property
    def file_name(self) -> str | None:
        return self.path.name if self.path is not None else None

    def import_names(self) -> list[str]:
        return [imp.name for imp in self.imports]

    def has_import(self, name: str) -> bool:
        """True if ``name`` is imported exactly or through its package wildcard."""
        package = name.rsplit(".", 1)[0]
        for imp in self.imports:
            if imp.is_static:
                continue
            if imp.is_wildcard and imp.name == package:
                return True
            if not imp.is_wildcard and imp.name == name:
                return True
        return False

    def all_annotations(self) -> list[Annotation]:
        """Every annotation on a type or method in the file."""
        result: list[Annotation] = []
        for decl in self.types:
            result.extend(decl.annotations)
        for method in self.methods:
            result.extend(method.annotations)
        return result
