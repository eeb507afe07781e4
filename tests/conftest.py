"""Pytest configuration and shared fixtures."""

import io
from collections.abc import AsyncGenerator, Generator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from modbuild.tools.registry import ToolRegistry
from modbuild.tools.runner import ToolRunner


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run the test inside an empty working directory.

    Yields:
        Path to the working directory.
    """
    monkeypatch.chdir(tmp_path)
    yield tmp_path


def write_file(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def source_tree(workdir: Path) -> Path:
    """Create main, test and user module sources in the working directory.

    Returns:
        Path to the working directory.
    """
    write_file(workdir / "src/main/moduleA/module-info.java", "module moduleA {}")
    write_file(workdir / "src/main/moduleA/a/A.java", "package a; class A {}")
    write_file(workdir / "src/main/moduleB/module-info.java", "module moduleB {}")
    write_file(workdir / "src/test/moduleA/module-info.java", "open module moduleA {}")
    write_file(workdir / "src/test/moduleA/a/ATests.java", "package a; class ATests {}")
    write_file(workdir / "src/user/integration/module-info.java", "module integration {}")
    write_file(workdir / "src/user/integration/it/UserTests.java", "package it;")
    write_file(workdir / "src/main/moduleA/README.md", "not a source file")
    return workdir


def option_value(args: list[str], option: str) -> str:
    return args[args.index(option) + 1]


@dataclass
class ToolCalls:
    """Records every in-process tool call in order."""

    calls: list[tuple[str, list[str]]] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def args_of(self, index: int) -> list[str]:
        return self.calls[index][1]


def fake_compiler(calls: ToolCalls, result: int = 0):
    """A compiler provider that writes one `.class` file per source file."""

    def provider(stdout, stderr, args: list[str]) -> int:
        calls.calls.append(("javac", args))
        if result != 0:
            stderr.write("error: compilation failed\n")
            return result
        target = Path(option_value(args, "-d"))
        source_root = Path(option_value(args, "--module-source-path"))
        for arg in args:
            if source_root in Path(arg).parents and Path(arg).is_file():
                relative = Path(arg).relative_to(source_root)
                out = target / relative.with_suffix(".class")
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_bytes(b"\xca\xfe\xba\xbe")
        return 0

    return provider


def fake_test_runner(calls: ToolCalls, result: int = 0):
    def provider(stdout, stderr, args: list[str]) -> int:
        calls.calls.append(("java", args))
        stdout.write("Test run finished\n")
        return result

    return provider


@pytest.fixture
def tool_calls() -> ToolCalls:
    return ToolCalls()


@pytest.fixture
def registry(tool_calls: ToolCalls) -> ToolRegistry:
    """A registry whose compiler and test runner are in-process fakes."""
    registry = ToolRegistry(load_entry_points=False)
    registry.register("javac", fake_compiler(tool_calls))
    registry.register("java", fake_test_runner(tool_calls))
    return registry


@pytest.fixture
def tool_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def runner(registry: ToolRegistry, tool_output: io.StringIO) -> ToolRunner:
    return ToolRunner(registry=registry, stdout=tool_output, stderr=tool_output)


@dataclass
class ArtifactServer:
    """A local HTTP server that serves any path and counts requests."""

    server: TestServer
    hits: list[str]

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))


@pytest_asyncio.fixture
async def artifact_server() -> AsyncGenerator[ArtifactServer, None]:
    hits: list[str] = []

    async def handler(request: web.Request) -> web.StreamResponse:
        hits.append(request.path_qs)
        if request.path.endswith("missing.jar"):
            return web.Response(status=404)
        return web.Response(body=b"PK\x03\x04" + request.path.encode())

    app = web.Application()
    app.router.add_get("/{tail:.*}", handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield ArtifactServer(server=server, hits=hits)
    finally:
        await server.close()
