"""Java source parsing for checktests."""

from .parser import JavaSourceParser, load_sources
from .syntax import (
    Annotation,
    ImportDecl,
    MethodDecl,
    SourceFile,
    TypeDecl,
    decode_string_literal,
)

__all__ = [
    "Annotation",
    "ImportDecl",
    "JavaSourceParser",
    "MethodDecl",
    "SourceFile",
    "TypeDecl",
    "decode_string_literal",
    "load_sources",
]
