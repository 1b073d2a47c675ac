"""Java source parsing using Tree-sitter."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

import tree_sitter
import tree_sitter_java as tsjava

from ..errors import ParseError
from .syntax import Annotation, ImportDecl, MethodDecl, SourceFile, TypeDecl

logger = logging.getLogger(__name__)

TYPE_DECLARATIONS = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "record_declaration": "record",
    "annotation_type_declaration": "annotation",
}
ANNOTATION_NODES = ("marker_annotation", "annotation")
COMMENT_NODES = ("comment", "line_comment", "block_comment")


class JavaSourceParser:
    """Turns Java source text into a :class:`SourceFile`.

    Supports:
    - package and import declarations (static and wildcard imports)
    - class, interface, enum, record and annotation type declarations,
      nested to any depth (including enum body declarations), local
      classes and anonymous class bodies
    - method declarations with annotations, modifiers, parameters, throws
      clause, body and the comment directly preceding them

    A tree-sitter ``Parser`` is not reentrant, so parse calls are serialized
    behind a lock and one instance can be shared between threads.
    """

    def __init__(self, strict: bool = True) -> None:
        """
        Args:
            strict: If True, files with syntax errors raise ParseError
                instead of yielding a partial SourceFile.
        """
        self.strict = strict
        self._language = tree_sitter.Language(tsjava.language())
        self._parser = tree_sitter.Parser(self._language)
        self._lock = threading.Lock()

    def parse_file(self, path: str | Path) -> SourceFile:
        """Read and parse a file from disk.

        Raises:
            ParseError: If the file cannot be read, decoded, or parsed.
        """
        path = Path(path)
        try:
            source = path.read_bytes().decode("utf-8")
        except OSError as e:
            raise ParseError(str(path), f"cannot read file: {e}") from e
        except UnicodeDecodeError as e:
            raise ParseError(str(path), f"not valid UTF-8: {e}") from e
        return self.parse_source(source, path.absolute())

    def parse_source(self, source: str, path: Path | None = None) -> SourceFile:
        """Parse source text; ``path`` is None for in-memory sources."""
        source_bytes = source.encode()
        with self._lock:
            tree = self._parser.parse(source_bytes)

        has_errors = self._has_errors(tree.root_node)
        if has_errors and self.strict:
            raise ParseError(str(path) if path else "<memory>", "syntax error")

        builder = _TreeReader(source_bytes)
        result = SourceFile(path=path, source=source, has_errors=has_errors)

        for child in tree.root_node.children:
            if child.type == "package_declaration":
                result.package = builder.package_name(child)
                result.package_end_line = child.end_point[0] + 1
            elif child.type == "import_declaration":
                result.imports.append(builder.import_decl(child))
            elif child.type in TYPE_DECLARATIONS:
                builder.type_decl(child, None, result)

        return result

    def _has_errors(self, node: tree_sitter.Node) -> bool:
        """Check if tree contains ERROR or MISSING nodes."""
        if node.type == "ERROR" or node.is_missing:
            return True
        if not node.has_error:
            return False
        return any(self._has_errors(child) for child in node.children)


class _TreeReader:
    """Converts tree-sitter nodes of one file into syntax model objects."""

    def __init__(self, source_bytes: bytes):
        self.source_bytes = source_bytes
        self.line_bytes = source_bytes.split(b"\n")

    def text(self, node: tree_sitter.Node) -> str:
        return self.source_bytes[node.start_byte:node.end_byte].decode()

    def column(self, point: tree_sitter.Point) -> int:
        """Convert a tree-sitter byte column into a character column."""
        row, col = point
        return len(self.line_bytes[row][:col].decode("utf-8", errors="replace"))

    def package_name(self, node: tree_sitter.Node) -> str | None:
        for child in node.children:
            if child.type in ("scoped_identifier", "identifier"):
                return self.text(child)
        return None

    def import_decl(self, node: tree_sitter.Node) -> ImportDecl:
        name = ""
        is_static = False
        is_wildcard = False
        for part in node.children:
            if part.type == "static":
                is_static = True
            elif part.type == "asterisk":
                is_wildcard = True
            elif part.type in ("scoped_identifier", "identifier"):
                name = self.text(part)
        return ImportDecl(
            name=name,
            is_static=is_static,
            is_wildcard=is_wildcard,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            start_column=self.column(node.start_point),
            end_column=self.column(node.end_point),
        )

    def annotation(self, node: tree_sitter.Node) -> Annotation:
        name_node = node.child_by_field_name("name")
        qualified = self.text(name_node) if name_node else ""
        value: str | None = None
        pairs: dict[str, str] = {}

        arguments = node.child_by_field_name("arguments")
        if arguments is not None:
            for arg in arguments.named_children:
                if arg.type == "element_value_pair":
                    key = arg.child_by_field_name("key")
                    val = arg.child_by_field_name("value")
                    if key is not None and val is not None:
                        pairs[self.text(key)] = self.text(val)
                elif arg.type not in COMMENT_NODES:
                    value = self.text(arg)

        return Annotation(
            qualified_name=qualified,
            text=self.text(node),
            start_line=node.start_point[0] + 1,
            start_column=self.column(node.start_point),
            end_line=node.end_point[0] + 1,
            end_column=self.column(node.end_point),
            value=value,
            pairs=pairs,
        )

    def annotations_and_modifiers(
        self, node: tree_sitter.Node
    ) -> tuple[list[Annotation], list[str]]:
        """Annotations and keyword modifiers of a declaration node."""
        annotations: list[Annotation] = []
        modifiers: list[str] = []
        for child in node.children:
            if child.type in ANNOTATION_NODES:
                annotations.append(self.annotation(child))
            elif child.type == "modifiers":
                # Java puts annotations inside the modifiers node
                for mod in child.children:
                    if mod.type in ANNOTATION_NODES:
                        annotations.append(self.annotation(mod))
                    elif mod.type not in COMMENT_NODES:
                        text = self.text(mod)
                        if text:
                            modifiers.append(text)
        return annotations, modifiers

    def type_decl(
        self, node: tree_sitter.Node, parent: TypeDecl | None, result: SourceFile
    ) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return

        annotations, _ = self.annotations_and_modifiers(node)
        decl = TypeDecl(
            name=self.text(name_node),
            kind=TYPE_DECLARATIONS[node.type],
            annotations=annotations,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            parent=parent,
        )
        result.types.append(decl)

        body = node.child_by_field_name("body")
        if body is not None:
            self.class_body(body, decl, result)

    def class_body(
        self, body: tree_sitter.Node, enclosing: TypeDecl, result: SourceFile
    ) -> None:
        """Collect members of a named or anonymous class body."""
        for member in self._members(body):
            if member.type in TYPE_DECLARATIONS:
                self.type_decl(member, enclosing, result)
                continue
            if member.type == "method_declaration":
                result.methods.append(self.method_decl(member, enclosing))
            self._local_declarations(member, enclosing, result)

    def _local_declarations(
        self, node: tree_sitter.Node, enclosing: TypeDecl, result: SourceFile
    ) -> None:
        """Local and anonymous classes below a member, in source order.

        Methods of an anonymous class belong to the nearest named type.
        """
        stack = list(reversed(node.children))
        while stack:
            child = stack.pop()
            if child.type in TYPE_DECLARATIONS:
                self.type_decl(child, enclosing, result)
            elif child.type == "class_body":
                self.class_body(child, enclosing, result)
            else:
                stack.extend(reversed(child.children))

    def _members(self, body: tree_sitter.Node) -> Iterable[tree_sitter.Node]:
        for child in body.children:
            if child.type == "enum_body_declarations":
                yield from child.children
            else:
                yield child

    def method_decl(self, node: tree_sitter.Node, enclosing: TypeDecl) -> MethodDecl:
        name_node = node.child_by_field_name("name")
        annotations, modifiers = self.annotations_and_modifiers(node)

        type_node = node.child_by_field_name("type")
        params_node = node.child_by_field_name("parameters")
        parameters: list[str] = []
        if params_node is not None:
            for param in params_node.named_children:
                if param.type in COMMENT_NODES:
                    continue
                parameters.append(" ".join(self.text(param).split()))

        throws: list[str] = []
        for child in node.children:
            if child.type == "throws":
                throws = [self.text(t) for t in child.named_children]
                break

        body_node = node.child_by_field_name("body")

        return MethodDecl(
            name=self.text(name_node) if name_node else "",
            annotations=annotations,
            modifiers=modifiers,
            return_type=self.text(type_node) if type_node else "void",
            parameters=parameters,
            throws=throws,
            body=self.text(body_node) if body_node else None,
            start_line=node.start_point[0] + 1,
            start_column=self.column(node.start_point),
            end_line=node.end_point[0] + 1,
            enclosing=enclosing,
            comment=self._leading_comment(node),
        )

    def _leading_comment(self, node: tree_sitter.Node) -> str | None:
        """Content of the comment immediately preceding a declaration."""
        previous = node.prev_sibling
        if previous is None or previous.type not in COMMENT_NODES:
            return None
        return _comment_content(self.text(previous))


def _comment_content(text: str) -> str:
    if text.startswith("//"):
        return text[2:].strip()
    content = text
    if content.startswith("/**"):
        content = content[3:]
    elif content.startswith("/*"):
        content = content[2:]
    if content.endswith("*/"):
        content = content[:-2]
    lines = [line.strip().lstrip("*").strip() for line in content.splitlines()]
    return "\n".join(line for line in lines if line)


def load_sources(
    paths: Iterable[Path],
    parser: JavaSourceParser,
    workers: int = 1,
) -> tuple[list[SourceFile], list[ParseError]]:
    """Parse many files, collecting failures instead of raising.

    Returns:
        Tuple of (parsed files in input order, parse errors).
    """
    paths = list(paths)

    def parse_one(path: Path) -> SourceFile | ParseError:
        try:
            return parser.parse_file(path)
        except ParseError as e:
            return e

    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(parse_one, paths))
    else:
        outcomes = [parse_one(p) for p in paths]

    files: list[SourceFile] = []
    failures: list[ParseError] = []
    for outcome in outcomes:
        if isinstance(outcome, ParseError):
            logger.debug("Skipped: %s", outcome)
            failures.append(outcome)
        else:
            files.append(outcome)
    return files, failures
