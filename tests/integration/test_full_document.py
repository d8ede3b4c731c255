"""End-to-end processing of complete Legal Markdown documents."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from legalmd.api import process_legal_markdown, process_legal_markdown_file
from legalmd.core.pipeline import PipelineLogger, create_default_pipeline, create_html_pipeline
from legalmd.core.processing import ProcessingOptions

pytestmark = pytest.mark.integration

AGREEMENT = """\
---
title: Services Agreement
client:
  name: Acme Corp
fee_amount: 1500
warranty: true
premium: false
parties:
  - name: Acme Corp
  - name: Widget Ltd
meta-json-output: meta.json
---
l. Definitions |defs|
[Warranty applies.]{warranty}[ Premium support.]{premium}

ll. Fees
The fee is |fee_amount|, see |defs| above.

{{#each parties}}
- {{name}}
{{/each}}

Signed for {{upper client.name}}.
@import schedule.md
"""

SCHEDULE = """\
---
schedule_owner: Legal
---
l. Schedule
Maintained by {{schedule_owner}}.
"""


@pytest.fixture
def agreement(tmp_path: Path) -> Path:
    (tmp_path / "schedule.md").write_text(SCHEDULE, encoding="utf-8")
    path = tmp_path / "agreement.md"
    path.write_text(AGREEMENT, encoding="utf-8")
    return path


class TestAgreement:
    def test_content(self, agreement: Path) -> None:
        result = process_legal_markdown_file(agreement)
        assert result.success, result.errors
        lines = result.content.splitlines()

        assert lines[0] == "Article 1. Definitions"
        assert lines[1] == "Warranty applies."
        assert "Section 1. Fees" in lines
        assert "The fee is $1,500.00, see Article 1. above." in lines
        assert "- Acme Corp" in lines
        assert "- Widget Ltd" in lines
        assert "Signed for ACME CORP." in lines
        assert "Article 2. Schedule" in lines
        assert "Maintained by Legal." in lines
        assert "Premium support" not in result.content
        assert "{{" not in result.content

    def test_metadata_and_export(self, agreement: Path, tmp_path: Path) -> None:
        result = process_legal_markdown_file(agreement)
        assert result.metadata["schedule_owner"] == "Legal"
        assert result.metadata["_cross_references"][0]["key"] == "defs"

        exported = tmp_path / "meta.json"
        assert result.exported_files == [str(exported)]
        data = json.loads(exported.read_text(encoding="utf-8"))
        assert data["title"] == "Services Agreement"
        assert "meta-json-output" not in data

    def test_every_step_reported(self, agreement: Path) -> None:
        result = process_legal_markdown_file(agreement)
        names = [r.step_name for r in result.step_results]
        assert names[:3] == ["rst-conversion", "latex-conversion", "yaml-parsing"]
        assert names[-1] == "field-tracking"
        assert result.get_step("field-tracking").skipped

    def test_steps_can_be_skipped(self, agreement: Path) -> None:
        result = process_legal_markdown_file(agreement, skip_steps=["headers", "metadata-export"])
        assert result.content.startswith("l. Definitions")
        assert result.exported_files == []


def test_html_pipeline_tracks_fields() -> None:
    result = create_html_pipeline().execute("---\nclient: Acme\n---\nl. Parties\nClient: {{client}}\nAgent: {{agent}}")
    assert result.success
    assert 'data-field="client"' in result.content
    assert result.field_report["total"] >= 2


def test_restructured_text_input() -> None:
    result = process_legal_markdown("Title\n=====\n\nIntro paragraph.\n\nPart\n----\n\nBody.")
    assert result.success, result.errors
    lines = result.content.splitlines()
    assert lines[0] == "Article 1. Title"
    assert "Section 1. Part" in lines


def test_latex_input() -> None:
    result = process_legal_markdown("\\section{Scope}\nThis is \\textbf{binding}.")
    assert result.content.splitlines() == ["Article 1. Scope", "This is **binding**."]


def test_metrics_report_after_run() -> None:
    pipeline_logger = PipelineLogger(enable_metrics=True)
    pipeline = create_default_pipeline(pipeline_logger)
    process_legal_markdown("---\na: 1\n---\n{{a}}", pipeline=pipeline)
    report = pipeline_logger.generate_report()
    assert "Total Steps: 10" in report
    assert "Skipped: 1" in report
    assert "Success Rate: 100.0%" in report


# ============================================================================
# Substituted values are never rescanned by later steps
# ============================================================================


class TestValueIndependence:
    METADATA = {"ref": "{{other}}", "name": "{{other}}", "flag": True, "other": "X"}

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("See |ref|.", "See {{other}}."),
            ("{{#if flag}}{{name}}{{/if}}", "{{other}}"),
            ("{{#items}}{{name}}{{/items}}", "{{other}}"),
            ("Hi {{name}}", "Hi {{other}}"),
        ],
    )
    def test_value_braces_survive_the_run(self, content: str, expected: str) -> None:
        metadata = dict(self.METADATA, items=[{"name": "{{other}}"}])
        result = create_default_pipeline().execute(content, metadata)
        assert result.success, result.errors
        assert result.content == expected

    def test_literal_mixin_in_content_is_still_resolved(self) -> None:
        result = create_default_pipeline().execute("|ref| and {{other}}", dict(self.METADATA))
        assert result.content == "{{other}} and X"


def test_centralized_tracking_wraps_filled_fields() -> None:
    result = create_default_pipeline().execute(
        "Client: {{client}}\nAgent: {{agent}}",
        {"client": "Acme"},
        ProcessingOptions(enable_field_tracking=True),
    )
    assert result.content.splitlines() == [
        'Client: <span class="legal-field imported-value" data-field="client">Acme</span>',
        'Agent: <span class="legal-field missing-value" data-field="agent">{{agent}}</span>',
    ]
    assert result.field_report["filled"] == 1
    assert result.field_report["empty"] == 1
