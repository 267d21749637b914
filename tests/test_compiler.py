"""Tests for schemadrift.compiler.adapter — subprocess compiler invocation.

The "compiler" in these tests is a small Python script run with the
current interpreter, so no external toolchain is required.
"""

from __future__ import annotations

import asyncio
import sys
import textwrap
from pathlib import Path

import pytest

from schemadrift.compiler.adapter import (
    CommandCompiler,
    CompilerFailure,
    RunCancelled,
    classify_failure,
    expand_command,
)
from schemadrift.schemas.config import CompilerConfig, RunMode, SchemaGroup
from schemadrift.schemas.outcome import CompilerErrorKind

# Writes <stem>.txt with the upper-cased schema content for every schema
GENERATOR = textwrap.dedent("""\
    import pathlib, sys
    out = pathlib.Path(sys.argv[1])
    for arg in sys.argv[2:]:
        src = pathlib.Path(arg)
        text = src.read_text()
        if "syntax error" in text:
            print(f"{arg}:2:5: unexpected token", file=sys.stderr)
            sys.exit(1)
        (out / (src.stem + ".txt")).write_text(text.upper())
""")


# ── Helpers ──────────────────────────────────────────────────────


def _write_script(tmp_path: Path, name: str, body: str) -> str:
    path = tmp_path / name
    path.write_text(body)
    return str(path)


def _group(tmp_path: Path, schemas: dict[str, str] | None = None) -> SchemaGroup:
    schemas = {"schemas/a.tsp": "model a\n"} if schemas is None else schemas
    for rel, content in schemas.items():
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)
    return SchemaGroup(
        name="api",
        working_directory=str(tmp_path),
        output_dir="generated",
        schema_paths=tuple(schemas),
    )


def _generator_config(tmp_path: Path) -> CompilerConfig:
    script = _write_script(tmp_path, "gen.py", GENERATOR)
    return CompilerConfig(
        generate_command=[sys.executable, script, "{output}", "{schemas}"],
        validate_command=[sys.executable, "-c", "import sys; sys.exit(0)", "{schemas}"],
    )


# ── expand_command ───────────────────────────────────────────────


class TestExpandCommand:
    def test_schemas_expand_to_separate_args(self, tmp_path):
        group = SchemaGroup(
            name="g", working_directory="/w", output_dir="gen",
            schema_paths=("a.tsp", "b.tsp"),
        )
        argv = expand_command(
            ["tsp", "compile", "{schemas}", "--out={output}", "--cwd", "{workdir}"],
            group, Path("/tmp/out"),
        )
        assert argv == [
            "tsp", "compile", "a.tsp", "b.tsp", "--out=/tmp/out", "--cwd", "/w",
        ]

    def test_no_output_dir(self):
        group = SchemaGroup(name="g", working_directory="/w", output_dir="gen")
        assert expand_command(["x", "{output}"], group, None) == ["x", ""]


# ── classify_failure ─────────────────────────────────────────────


class TestClassifyFailure:
    _pattern = CompilerConfig().error_pattern

    def _group(self) -> SchemaGroup:
        return SchemaGroup(
            name="g", working_directory="/w", output_dir="gen",
            schema_paths=("schemas/user.tsp", "schemas/order.tsp"),
        )

    def test_schema_diagnostic_is_validation_error(self):
        output = "Compiling...\nschemas/order.tsp:12:3: unknown identifier 'Strng'\n"
        error = classify_failure(output, 1, self._group(), self._pattern)
        assert error.kind == CompilerErrorKind.VALIDATION
        assert error.file == "schemas/order.tsp"
        assert error.line == 12
        assert error.message == "unknown identifier 'Strng'"

    def test_absolute_path_diagnostic_matches_schema(self):
        output = "/w/schemas/user.tsp:4: duplicate model\n"
        error = classify_failure(output, 1, self._group(), self._pattern)
        assert error.kind == CompilerErrorKind.VALIDATION
        assert error.file == "schemas/user.tsp"

    def test_unrelated_output_is_generation_error(self):
        output = "Traceback (most recent call last):\nRuntimeError: emitter crashed\n"
        error = classify_failure(output, 2, self._group(), self._pattern)
        assert error.kind == CompilerErrorKind.GENERATION
        assert error.message == "Compiler exited with code 2: RuntimeError: emitter crashed"
        assert error.file is None

    def test_diagnostic_for_non_schema_file_is_generation_error(self):
        output = "node_modules/emitter/index.js:10: TypeError\n"
        error = classify_failure(output, 1, self._group(), self._pattern)
        assert error.kind == CompilerErrorKind.GENERATION

    def test_empty_output(self):
        error = classify_failure("", 3, self._group(), self._pattern)
        assert error.message == "Compiler exited with code 3"

    def test_custom_pattern(self):
        pattern = r"^ERROR in (?P<file>\S+) line (?P<line>\d+): (?P<message>.*)$"
        output = "ERROR in schemas/user.tsp line 9: bad field\n"
        error = classify_failure(output, 1, self._group(), pattern)
        assert error.kind == CompilerErrorKind.VALIDATION
        assert error.line == 9
        assert error.message == "bad field"


# ── CommandCompiler ──────────────────────────────────────────────


class TestCommandCompiler:
    @pytest.mark.asyncio()
    async def test_generate_reads_output(self, tmp_path):
        group = _group(tmp_path, {"schemas/a.tsp": "model a\n", "schemas/b.tsp": "model b\n"})
        out = tmp_path / "scratch"
        out.mkdir()
        compiler = CommandCompiler(_generator_config(tmp_path), timeout=30)

        run = await compiler.invoke(group, RunMode.GENERATE, out)

        assert run.validated == 2
        assert run.artifacts.files == {"a.txt": b"MODEL A\n", "b.txt": b"MODEL B\n"}

    @pytest.mark.asyncio()
    async def test_validate_mode_returns_empty_set(self, tmp_path):
        group = _group(tmp_path)
        compiler = CommandCompiler(_generator_config(tmp_path), timeout=30)
        run = await compiler.invoke(group, RunMode.VALIDATE, None)
        assert run.validated == 1
        assert len(run.artifacts) == 0

    @pytest.mark.asyncio()
    async def test_validation_error(self, tmp_path):
        group = _group(tmp_path, {"schemas/bad.tsp": "model\nsyntax error\n"})
        out = tmp_path / "scratch"
        out.mkdir()
        compiler = CommandCompiler(_generator_config(tmp_path), timeout=30)

        with pytest.raises(CompilerFailure) as exc_info:
            await compiler.invoke(group, RunMode.GENERATE, out)

        error = exc_info.value.error
        assert error.kind == CompilerErrorKind.VALIDATION
        assert error.file == "schemas/bad.tsp"
        assert error.line == 2
        assert "unexpected token" in error.output

    @pytest.mark.asyncio()
    async def test_crash_is_generation_error(self, tmp_path):
        script = _write_script(tmp_path, "crash.py", "raise SystemExit('emitter exploded')\n")
        config = CompilerConfig(generate_command=[sys.executable, script, "{schemas}"])
        out = tmp_path / "scratch"
        out.mkdir()

        with pytest.raises(CompilerFailure) as exc_info:
            await CommandCompiler(config, timeout=30).invoke(_group(tmp_path), RunMode.GENERATE, out)

        error = exc_info.value.error
        assert error.kind == CompilerErrorKind.GENERATION
        assert "emitter exploded" in error.message

    @pytest.mark.asyncio()
    async def test_missing_executable(self, tmp_path):
        config = CompilerConfig(generate_command=["definitely-not-a-compiler-xyz", "{schemas}"])
        with pytest.raises(CompilerFailure) as exc_info:
            await CommandCompiler(config, timeout=30).invoke(
                _group(tmp_path), RunMode.GENERATE, tmp_path,
            )
        assert exc_info.value.error.kind == CompilerErrorKind.GENERATION
        assert "not found" in exc_info.value.error.message

    @pytest.mark.asyncio()
    async def test_timeout_is_generation_error(self, tmp_path):
        config = CompilerConfig(
            generate_command=[sys.executable, "-c", "import time; time.sleep(30)"],
        )
        with pytest.raises(CompilerFailure) as exc_info:
            await CommandCompiler(config, timeout=0.5).invoke(
                _group(tmp_path), RunMode.GENERATE, tmp_path,
            )
        error = exc_info.value.error
        assert error.kind == CompilerErrorKind.GENERATION
        assert "timed out" in error.message

    @pytest.mark.asyncio()
    async def test_cancel_event_stops_process(self, tmp_path):
        config = CompilerConfig(
            generate_command=[sys.executable, "-c", "import time; time.sleep(30)"],
        )
        event = asyncio.Event()
        compiler = CommandCompiler(config, timeout=60, cancel_event=event)
        asyncio.get_running_loop().call_later(0.3, event.set)

        with pytest.raises(RunCancelled):
            await compiler.invoke(_group(tmp_path), RunMode.GENERATE, tmp_path)

    @pytest.mark.asyncio()
    async def test_already_cancelled_never_spawns(self, tmp_path):
        marker = tmp_path / "spawned"
        config = CompilerConfig(
            generate_command=[sys.executable, "-c", f"open({str(marker)!r}, 'w')"],
        )
        event = asyncio.Event()
        event.set()
        with pytest.raises(RunCancelled):
            await CommandCompiler(config, timeout=30, cancel_event=event).invoke(
                _group(tmp_path), RunMode.GENERATE, tmp_path,
            )
        assert not marker.exists()

    @pytest.mark.asyncio()
    async def test_no_schemas_is_validation_error(self, tmp_path):
        group = SchemaGroup(name="empty", working_directory=str(tmp_path), output_dir="gen")
        with pytest.raises(CompilerFailure) as exc_info:
            await CommandCompiler(_generator_config(tmp_path), timeout=30).invoke(
                group, RunMode.GENERATE, tmp_path,
            )
        assert exc_info.value.error.kind == CompilerErrorKind.VALIDATION
        assert "No schema files matched" in exc_info.value.error.message

    @pytest.mark.asyncio()
    async def test_missing_command_template(self, tmp_path):
        with pytest.raises(CompilerFailure) as exc_info:
            await CommandCompiler(CompilerConfig(), timeout=30).invoke(
                _group(tmp_path), RunMode.VALIDATE, None,
            )
        assert exc_info.value.error.message == "No validate command configured"

    @pytest.mark.asyncio()
    async def test_env_passed_to_process(self, tmp_path):
        script = _write_script(tmp_path, "env.py", textwrap.dedent("""\
            import os, pathlib, sys
            pathlib.Path(sys.argv[1], "flag.txt").write_text(os.environ["SCHEMA_FLAG"])
        """))
        config = CompilerConfig(
            generate_command=[sys.executable, script, "{output}"],
            env={"SCHEMA_FLAG": "on"},
        )
        out = tmp_path / "scratch"
        out.mkdir()
        run = await CommandCompiler(config, timeout=30).invoke(_group(tmp_path), RunMode.GENERATE, out)
        assert run.artifacts.files == {"flag.txt": b"on"}
