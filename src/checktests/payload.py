"""Wire models for the export request."""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field

from .models import FrameworkDialect, TestRecord

DEFAULT_FRAMEWORK = FrameworkDialect.JUNIT.value
LANGUAGE = "java"


class TestPayload(BaseModel):
    """One test method as the server expects it."""

    __test__ = False

    name: str
    suites: list[str]
    code: str
    file: str
    skipped: bool
    labels: list[str]

    @classmethod
    def from_record(cls, record: TestRecord) -> TestPayload:
        return cls(**record.to_dict())


class ExportPayload(BaseModel):
    """Body of ``POST /api/load``."""

    model_config = ConfigDict(populate_by_name=True)

    framework: str = DEFAULT_FRAMEWORK
    language: str = LANGUAGE
    noempty: bool = True
    no_detach: bool = Field(default=True, alias="no-detach")
    structure: bool = True
    sync: bool = True
    tests: list[TestPayload] = Field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        records: Iterable[TestRecord],
        framework: FrameworkDialect | None = None,
    ) -> ExportPayload:
        """Build a payload; an unknown or missing framework is sent as ``junit``."""
        if framework is None or framework is FrameworkDialect.UNKNOWN:
            name = DEFAULT_FRAMEWORK
        else:
            name = framework.value
        return cls(
            framework=name,
            tests=[TestPayload.from_record(record) for record in records],
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
