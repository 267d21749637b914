"""Tests for schemadrift.report.renderer — deterministic Markdown output."""

from __future__ import annotations

import re

from schemadrift import policy
from schemadrift.drift.comparator import compare
from schemadrift.report.renderer import (
    DRIFT_MARKER,
    build_outputs,
    render_group,
    render_run,
    status_line,
)
from schemadrift.schemas.artifacts import ArtifactKind, ArtifactSet
from schemadrift.schemas.config import RunConfig
from schemadrift.schemas.outcome import CompilerError, CompilerErrorKind, OutcomeStatus
from schemadrift.schemas.run import GroupResult

# ── Factories ────────────────────────────────────────────────────


def _config(**overrides) -> RunConfig:
    defaults = {"schema_patterns": ["*.tsp"]}
    defaults.update(overrides)
    return RunConfig(**defaults)


def _drift_report():
    generated = ArtifactSet(kind=ArtifactKind.GENERATED, files={
        "models/user.ts": b"export interface User {\n  id: string;\n  name: string;\n}\n",
        "models/order.ts": b"export interface Order {}\n",
        "same.ts": b"same\n",
    })
    committed = ArtifactSet(kind=ArtifactKind.COMMITTED, files={
        "models/user.ts": b"export interface User {\n  id: string;\n}\n",
        "legacy.ts": b"old\n",
        "same.ts": b"same\n",
    })
    return compare(generated, committed, schemas_validated=2)


def _group_result(name: str, outcome) -> GroupResult:
    return GroupResult(name=name, outcome=outcome, summary=render_group(name, outcome))


# ── status_line ──────────────────────────────────────────────────


class TestStatusLine:
    def test_pass(self):
        outcome = policy.evaluate(compare(
            ArtifactSet(kind=ArtifactKind.GENERATED), ArtifactSet(kind=ArtifactKind.COMMITTED),
        ), _config())
        assert status_line("api", outcome) == "api: PASS"

    def test_fail_includes_kind(self):
        outcome = policy.evaluate(_drift_report(), _config(fail_on_drift=True))
        assert status_line("api", outcome) == "api: FAIL (drift_error)"


# ── render_group ─────────────────────────────────────────────────


class TestRenderGroup:
    def test_warn_lists_changed_paths_by_status(self):
        outcome = policy.evaluate(_drift_report(), _config())
        text = render_group("api", outcome)

        assert text.startswith("### api: WARN\n")
        assert DRIFT_MARKER in text
        added = text.index("#### Added (1)")
        modified = text.index("#### Modified (1)")
        removed = text.index("#### Removed (1)")
        assert added < modified < removed
        assert "- `models/order.ts`" in text
        assert "- `models/user.ts`" in text
        assert "- `legacy.ts`" in text
        assert "same.ts" not in text

    def test_diff_in_collapsible_block(self):
        outcome = policy.evaluate(_drift_report(), _config())
        text = render_group("api", outcome)
        assert "<details>\n<summary>Diff: models/user.ts</summary>\n\n```diff\n" in text
        assert "+  name: string;" in text
        assert "</details>" in text

    def test_fail_drift_renders_same_sections(self):
        outcome = policy.evaluate(_drift_report(), _config(fail_on_drift=True))
        text = render_group("api", outcome)
        assert "#### Modified (1)" in text
        assert DRIFT_MARKER in text

    def test_pass_has_no_drift_marker(self):
        report = compare(
            ArtifactSet(kind=ArtifactKind.GENERATED, files={"a": b"1"}),
            ArtifactSet(kind=ArtifactKind.COMMITTED, files={"a": b"1"}),
            schemas_validated=1,
        )
        text = render_group("api", policy.evaluate(report, _config()))
        assert DRIFT_MARKER not in text
        assert "Schemas validated: 1 | Artifacts generated: 1" in text
        assert "####" not in text

    def test_validation_error_shows_location_and_output(self):
        error = CompilerError(
            kind=CompilerErrorKind.VALIDATION,
            message="unknown type 'Strng'",
            file="schemas/user.tsp",
            line=7,
            output="schemas/user.tsp:7:10: unknown type 'Strng'\n",
        )
        text = render_group("api", policy.evaluate(error, _config()))
        assert text.startswith("### api: FAIL (validation_error)\n")
        assert "schemas/user.tsp:7: unknown type 'Strng'" in text
        assert "Location: `schemas/user.tsp:7`" in text
        assert "<summary>Compiler output</summary>" in text
        assert DRIFT_MARKER not in text

    def test_cancelled(self):
        text = render_group("api", policy.cancelled("Group api cancelled"))
        assert text == "### api: CANCELLED\n\nGroup api cancelled\n"

    def test_fence_grows_past_backticks_in_diff(self):
        generated = ArtifactSet(kind=ArtifactKind.GENERATED, files={"doc.md": b"```js\nnew\n```\n"})
        committed = ArtifactSet(kind=ArtifactKind.COMMITTED, files={"doc.md": b"```js\nold\n```\n"})
        text = render_group("docs", policy.evaluate(compare(generated, committed), _config()))
        assert "````diff\n" in text

    def test_deterministic(self):
        outcome = policy.evaluate(_drift_report(), _config())
        assert render_group("api", outcome) == render_group("api", outcome)
        assert render_group("api", outcome) == render_group(
            "api", policy.evaluate(_drift_report(), _config()),
        )

    def test_filenames_extractable_by_regex(self):
        text = render_group("api", policy.evaluate(_drift_report(), _config()))
        paths = re.findall(r"^- `([^`]+)`$", text, re.MULTILINE)
        assert paths == ["models/order.ts", "models/user.ts", "legacy.ts"]


# ── render_run / build_outputs ───────────────────────────────────


class TestRenderRun:
    def test_run_header_and_group_sections(self):
        warn = policy.evaluate(_drift_report(), _config())
        error = policy.evaluate(
            CompilerError(kind=CompilerErrorKind.GENERATION, message="boom"), _config(),
        )
        groups = {
            "api": _group_result("api", warn),
            "billing": _group_result("billing", error),
        }
        overall = policy.aggregate(g.outcome for g in groups.values())
        text = render_run(overall, groups)

        assert text.startswith("## Schema drift check: FAIL\n\n1 of 2 group(s) fail\n\n")
        assert text.index("### api: WARN") < text.index("### billing: FAIL (generation_error)")
        assert text.endswith("\n")
        assert not text.endswith("\n\n")


class TestBuildOutputs:
    def test_sums_counts_and_flags_drift(self):
        warn = policy.evaluate(_drift_report(), _config())
        error = policy.evaluate(
            CompilerError(kind=CompilerErrorKind.VALIDATION, message="bad"), _config(),
        )
        groups = {"api": _group_result("api", warn), "b": _group_result("b", error)}
        outputs = build_outputs(groups, "summary")
        assert outputs.schemas_validated == 2
        assert outputs.schemas_generated == 3
        assert outputs.drift_detected is True
        assert outputs.diff_summary == "summary"

    def test_no_drift(self):
        report = compare(
            ArtifactSet(kind=ArtifactKind.GENERATED, files={"a": b"1"}),
            ArtifactSet(kind=ArtifactKind.COMMITTED, files={"a": b"1"}),
            schemas_validated=4,
        )
        outcome = policy.evaluate(report, _config())
        assert outcome.status == OutcomeStatus.PASS
        outputs = build_outputs({"api": _group_result("api", outcome)}, "")
        assert outputs.drift_detected is False
        assert outputs.schemas_validated == 4
