"""Parsing of the tracking server's test listing."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import EmptyResultError, MalformedResponseError
from .models import KEY_DELIMITER
from .reconciler import clean_marker
from .utils import SOURCE_EXTENSION

TESTS_FIELD = "tests"


class TestDataResponse(BaseModel):
    """Body of ``GET /api/test_data``: key -> raw marker."""

    __test__ = False

    model_config = ConfigDict(coerce_numbers_to_str=True)

    tests: dict[str, str]


class RemoteMappingParser:
    """Turns the server's JSON test listing into a key -> marker mapping."""

    def __init__(self, extension: str = SOURCE_EXTENSION):
        self.extension = extension

    def parse(self, body: str | bytes) -> dict[str, str]:
        """
        Parse a test listing, keeping only entries for managed source files.

        Raises:
            MalformedResponseError: If the body is not JSON, has no ``tests``
                object, or holds non-string values.
            EmptyResultError: If ``tests`` is empty.
        """
        tests = self._validate(body).tests
        if not tests:
            raise EmptyResultError()
        return {
            key: marker
            for key, marker in tests.items()
            if self.extension in key.split(KEY_DELIMITER, 1)[0]
        }

    def markers(self, body: str | bytes) -> set[str]:
        """All marker values in a listing, with the transport prefix stripped."""
        return {clean_marker(marker) for marker in self._validate(body).tests.values()}

    def _validate(self, body: str | bytes) -> TestDataResponse:
        root = _load_json(body)
        if not isinstance(root, dict):
            raise MalformedResponseError("response is not a JSON object")
        if TESTS_FIELD not in root:
            raise MalformedResponseError(
                f"response does not contain '{TESTS_FIELD}' field"
            )
        if not isinstance(root[TESTS_FIELD], dict):
            raise MalformedResponseError(f"'{TESTS_FIELD}' field is not a JSON object")
        try:
            return TestDataResponse.model_validate({TESTS_FIELD: root[TESTS_FIELD]})
        except ValidationError as e:
            raise MalformedResponseError(
                f"failed to convert tests data: {e.error_count()} invalid entries"
            ) from e


def _load_json(body: str | bytes) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponseError(str(e)) from e
