"""Resolution of server mapping keys to parsed test methods."""

from __future__ import annotations

import logging
import posixpath
from typing import Callable, Iterable, Sequence

from .errors import InvalidKeyError, MethodNotFoundError
from .java.syntax import MethodDecl, SourceFile
from .models import KEY_DELIMITER, MatchResult, TestIdentity
from .utils import normalize_path, path_ends_with

logger = logging.getLogger(__name__)

KEY_PARTS = 3

FileStrategy = Callable[[TestIdentity, SourceFile], bool]


def parse_key(key: str) -> TestIdentity:
    """
    Split ``path#type#method`` into an identity.

    Raises:
        InvalidKeyError: Unless the key has exactly three non-empty segments.
    """
    parts = [part.strip() for part in key.split(KEY_DELIMITER)]
    if len(parts) != KEY_PARTS or not all(parts):
        raise InvalidKeyError(key, len(parts))
    return TestIdentity(file_path=parts[0], type_name=parts[1], method_name=parts[2])


def match_by_file_name(identity: TestIdentity, source_file: SourceFile) -> bool:
    """The key's final path component equals the file's name."""
    if source_file.path is None:
        return False
    key_name = posixpath.basename(normalize_path(identity.file_path))
    return key_name == source_file.path.name


def match_by_path_suffix(identity: TestIdentity, source_file: SourceFile) -> bool:
    """Either normalized path ends with the other on a segment boundary."""
    if source_file.path is None:
        return False
    key_path = normalize_path(identity.file_path)
    file_path = normalize_path(str(source_file.path))
    return path_ends_with(file_path, key_path) or path_ends_with(key_path, file_path)


DEFAULT_STRATEGIES: tuple[tuple[str, FileStrategy], ...] = (
    ("file_name", match_by_file_name),
    ("path_suffix", match_by_path_suffix),
)


def find_method(identity: TestIdentity, source_file: SourceFile) -> MethodDecl | None:
    """First method in document order matching both method and type name."""
    for method in source_file.methods:
        if method.name == identity.method_name and method.type_name == identity.type_name:
            return method
    return None


class IdentityMatcher:
    """Tries each file strategy in order; the first one that finds the method wins."""

    def __init__(
        self,
        strategies: Sequence[tuple[str, FileStrategy]] = DEFAULT_STRATEGIES,
        verbose: bool = False,
    ):
        self.strategies = tuple(strategies)
        self.verbose = verbose

    def match(
        self, identity: TestIdentity, files: Iterable[SourceFile]
    ) -> MatchResult | None:
        files = list(files)
        for strategy_name, accepts in self.strategies:
            for source_file in files:
                accepted = accepts(identity, source_file)
                if self.verbose:
                    logger.debug(
                        "  [%s] %s vs %s: %s",
                        strategy_name,
                        identity.file_path,
                        source_file.path,
                        "accepted" if accepted else "rejected",
                    )
                if not accepted:
                    continue
                method = find_method(identity, source_file)
                if method is not None:
                    if self.verbose:
                        logger.debug(
                            "  Matched %s.%s by %s",
                            identity.type_name,
                            identity.method_name,
                            strategy_name,
                        )
                    return MatchResult(source_file, method, strategy_name)
        return None

    def resolve(self, key: str, files: Iterable[SourceFile]) -> MatchResult:
        """
        Parse a key and match it.

        Raises:
            InvalidKeyError: If the key is malformed.
            MethodNotFoundError: If no parsed method corresponds to the key.
        """
        identity = parse_key(key)
        result = self.match(identity, files)
        if result is None:
            raise MethodNotFoundError(key)
        return result
