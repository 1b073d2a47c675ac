"""Pytest fixtures for checktests tests."""

import tempfile
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from fastapi.testclient import TestClient

from checktests.client import TestomatClient
from checktests.java.parser import JavaSourceParser

API_KEY = "tstmt_test_key"
CALCULATOR_PATH = "com/example/CalculatorTest.java"


SAMPLE_JUNIT = """package com.example;

import org.junit.jupiter.api.Test;

public class CalculatorTest {

    @Test
    void addsNumbers() {
        assert 1 + 1 == 2;
    }

    @Test
    void subtractsNumbers() {
        assert 2 - 1 == 1;
    }
}
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class JavaProject:
    """A throwaway Maven-style project on disk."""

    def __init__(self, root: Path):
        self.root = root
        self.test_root = root / "src" / "test" / "java"

    def write(self, relative: str, content: str) -> Path:
        """Write a file below src/test/java and return its path."""
        path = self.test_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    def read(self, relative: str) -> str:
        return (self.test_root / relative).read_bytes().decode("utf-8")

    def snapshot(self) -> dict[Path, bytes]:
        return {p: p.read_bytes() for p in sorted(self.root.rglob("*.java"))}


@pytest.fixture
def java_project(temp_dir):
    """Create an empty Java project."""
    project = JavaProject(temp_dir / "project")
    project.test_root.mkdir(parents=True)
    return project


@pytest.fixture
def calculator_test(java_project):
    """Write the two-test JUnit 5 sample into the project."""
    return java_project.write(CALCULATOR_PATH, SAMPLE_JUNIT)


@pytest.fixture
def parser():
    """Create a strict JavaSourceParser."""
    return JavaSourceParser()


class FakeTrackingServer:
    """In-process stand-in for the tracking server's test endpoints."""

    def __init__(self) -> None:
        self.tests: dict[str, Any] = {}
        self.raw_body: str | None = None
        self.failures: list[int] = []
        self.loads: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str]] = []
        self.app = self._create_app()

    def fail_next(self, *statuses: int) -> None:
        """Answer the next requests with these status codes."""
        self.failures.extend(statuses)

    def _failure(self) -> Response | None:
        if not self.failures:
            return None
        status = self.failures.pop(0)
        return PlainTextResponse(f"failure {status}", status_code=status)

    def _create_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/api/test_data")
        def test_data(api_key: str = ""):
            self.calls.append(("GET", api_key))
            failure = self._failure()
            if failure is not None:
                return failure
            if self.raw_body is not None:
                return Response(self.raw_body, media_type="application/json")
            return {"tests": self.tests}

        @app.post("/api/load")
        async def load(request: Request, api_key: str = ""):
            self.calls.append(("POST", api_key))
            failure = self._failure()
            if failure is not None:
                return failure
            self.loads.append(await request.json())
            return {"status": "ok"}

        return app


@pytest.fixture
def server():
    """Create a fake tracking server."""
    return FakeTrackingServer()


@pytest.fixture
def http(server):
    """An httpx client wired to the fake server."""
    with TestClient(server.app) as client:
        yield client


@pytest.fixture
def client(http):
    """A TestomatClient talking to the fake server without retry delays."""
    return TestomatClient("http://testserver", API_KEY, http=http, backoff=0)
