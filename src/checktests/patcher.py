"""Line-level application of marker changes to Java source files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .errors import WriteError
from .java.syntax import Annotation, ImportDecl, MethodDecl
from .models import EditKind, FileModification, TextEdit
from .reconciler import MARKER_ANNOTATION, MARKER_IMPORT, marker_annotation

logger = logging.getLogger(__name__)

MARKER_VALUE_RE = re.compile(r"@TestId\s*\(\s*\"[^\"]*\"\s*\)")
_APPLY_ORDER = {EditKind.REPLACE: 0, EditKind.DELETE: 1, EditKind.INSERT: 2}


def marker_text(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'@{MARKER_ANNOTATION}("{escaped}")'


def import_text(name: str = MARKER_IMPORT) -> str:
    return f"import {name};"


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping line endings (matches parser line numbers)."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def line_content(line: str) -> str:
    return line.rstrip("\r\n")


def line_ending(line: str) -> str:
    return line[len(line_content(line)):]


def detect_line_ending(lines: list[str]) -> str:
    """The file's first line ending; ``\\n`` when there is none."""
    for line in lines:
        ending = line_ending(line)
        if ending:
            return ending
    return "\n"


def indentation(line: str) -> str:
    content = line_content(line)
    return content[: len(content) - len(content.lstrip())]


@dataclass
class _Splice:
    """Replace columns [start, end) of one line's content."""

    start: int
    end: int
    text: str
    removal: bool = False


@dataclass
class _LinePlan:
    splices: dict[int, list[_Splice]] = field(default_factory=dict)
    inserts: list[tuple[int, str]] = field(default_factory=list)

    def splice(self, index: int, splice: _Splice) -> None:
        self.splices.setdefault(index, []).append(splice)


class MinimalTextPatcher:
    """Applies a FileModification by editing only the lines it touches.

    Every other byte of the file, including line endings and trailing
    whitespace, is written back unchanged.
    """

    def apply(self, modification: FileModification) -> bool:
        """
        Patch the file behind a modification.

        Returns:
            True if the file was rewritten; False for empty modifications and
            in-memory sources without a path.

        Raises:
            WriteError: If the file cannot be read or written.
        """
        if not modification.has_modifications():
            return False

        source_file = modification.source_file
        if source_file.path is None:
            logger.debug("Skipping in-memory source without a path")
            return False

        path = source_file.path
        try:
            original = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise WriteError(str(path), str(e)) from e

        lines = split_lines(original)
        edits = self.plan(modification, lines)
        if not edits:
            return False

        updated = self.render(lines, edits)
        try:
            path.write_bytes("".join(updated).encode("utf-8"))
        except OSError as e:
            raise WriteError(str(path), str(e)) from e

        source_file.lines = updated
        logger.debug("Patched %s (%d edits)", path, len(edits))
        return True

    def plan(self, modification: FileModification, lines: list[str]) -> list[TextEdit]:
        """
        Turn a modification into edits against the original line numbering.

        Returns:
            Edits in planning order: removals, import insertion, markers.
        """
        eol = detect_line_ending(lines)
        plan = _LinePlan()

        for annotation in modification.annotations_to_remove:
            self._remove_span(plan, lines, annotation)
        for import_decl in modification.imports_to_remove:
            self._remove_span(plan, lines, import_decl)

        source_file = modification.source_file
        if modification.needs_import and not source_file.has_import(MARKER_IMPORT):
            plan.inserts.append((import_insert_index(modification), import_text() + eol))

        for method, value in modification.method_markers.items():
            existing = marker_annotation(method)
            if existing is None:
                self._add_marker(plan, lines, method, value, eol)
            else:
                self._update_marker(plan, lines, existing, value)

        return self._to_edits(plan, lines)

    def render(self, lines: list[str], edits: list[TextEdit]) -> list[str]:
        """
        Apply edits from the bottom of the file upwards.

        At one line index, replacements run before deletions and deletions
        before insertions; of several insertions, the later-planned one runs
        first so they end up in planning order.
        """
        result = list(lines)
        ordered = sorted(
            enumerate(edits),
            key=lambda item: (-item[1].line_index, _APPLY_ORDER[item[1].kind], -item[0]),
        )
        for _, edit in ordered:
            index = edit.line_index
            if edit.kind is EditKind.INSERT:
                text = edit.text or ""
                if index == len(result) and result and not line_ending(result[-1]):
                    result[-1] += line_ending(text) or "\n"
                result.insert(index, text)
            elif edit.kind is EditKind.REPLACE:
                result[index] = edit.text or ""
            else:
                del result[index]
        return result

    def _remove_span(
        self, plan: _LinePlan, lines: list[str], node: Annotation | ImportDecl
    ) -> None:
        first = node.start_line - 1
        last = node.end_line - 1
        for index in range(first, last + 1):
            content = line_content(lines[index])
            start = node.start_column if index == first else 0
            end = node.end_column if index == last else len(content)
            start, end = _widen_removal(content, start, end)
            plan.splice(index, _Splice(start, end, "", removal=True))

    def _add_marker(
        self,
        plan: _LinePlan,
        lines: list[str],
        method: MethodDecl,
        value: str,
        eol: str,
    ) -> None:
        index = method.start_line - 1
        line = lines[index]
        indent = indentation(line)
        if method.start_column <= len(indent):
            plan.inserts.append((index, indent + marker_text(value) + eol))
        else:
            # method shares its line with other code
            column = method.start_column
            plan.splice(index, _Splice(column, column, marker_text(value) + " "))

    def _update_marker(
        self, plan: _LinePlan, lines: list[str], existing: Annotation, value: str
    ) -> None:
        first = existing.start_line - 1
        content = line_content(lines[first])
        if existing.start_line == existing.end_line:
            match = MARKER_VALUE_RE.match(content, existing.start_column)
            end = match.end() if match else existing.end_column
            plan.splice(first, _Splice(existing.start_column, end, marker_text(value)))
            return

        plan.splice(first, _Splice(existing.start_column, len(content), marker_text(value)))
        last = existing.end_line - 1
        for index in range(first + 1, last + 1):
            content = line_content(lines[index])
            end = existing.end_column if index == last else len(content)
            start, end = _widen_removal(content, 0, end)
            plan.splice(index, _Splice(start, end, "", removal=True))

    def _to_edits(self, plan: _LinePlan, lines: list[str]) -> list[TextEdit]:
        edits: list[TextEdit] = []
        for index in sorted(plan.splices):
            line = lines[index]
            content = line_content(line)
            splices = plan.splices[index]
            updated = content
            for splice in sorted(splices, key=lambda s: (s.start, s.end), reverse=True):
                updated = updated[: splice.start] + splice.text + updated[splice.end:]

            if all(s.removal for s in splices) and not updated.strip():
                edits.append(TextEdit(index, EditKind.DELETE))
            elif updated != content:
                edits.append(TextEdit(index, EditKind.REPLACE, updated + line_ending(line)))

        for index, text in plan.inserts:
            edits.append(TextEdit(index, EditKind.INSERT, text))
        return edits


def import_insert_index(modification: FileModification) -> int:
    """0-based index of the line the marker import goes in front of."""
    source_file = modification.source_file
    if source_file.imports:
        return max(imp.end_line for imp in source_file.imports)
    if source_file.package_end_line is not None:
        return source_file.package_end_line
    return 0


def _widen_removal(content: str, start: int, end: int) -> tuple[int, int]:
    """Take the whitespace separating a removed span from its neighbours."""
    after = content[end:]
    if after.strip():
        return start, len(content) - len(after.lstrip(" \t"))
    before = content[:start]
    return len(before.rstrip(" \t")), len(content)
