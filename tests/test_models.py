"""Tests for the extraction and report schemas."""
import base64
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from fakes import extraction
from siterecap.models import (
    DailyReportData,
    PhotoAnalysis,
    PhotoRef,
    ReportDebug,
    ReportResult,
    SectionHazard,
    fallback_report,
)


class TestPhotoAnalysis:

    def test_valid_extraction(self, kitchen_extraction):
        analysis = PhotoAnalysis.model_validate({**kitchen_extraction, "photoIndex": 1})

        assert analysis.photo_index == 1
        assert analysis.space == "Kitchen"
        assert analysis.caption == ""
        assert analysis.tasks[0].confidence == 0.82
        assert analysis.error is False

    @pytest.mark.parametrize("field,value", [
        ("space", "Attic"),
        ("phase", "Roofing"),
        ("hazards", [{"type": "debris", "severity": "medium"}]),
        ("equipment", [{"name": "crane", "category": "big_machine"}]),
        ("tasks", [{"name": "paint", "confidence": 1.4}]),
        ("personnel_count", -1),
    ])
    def test_schema_violations_rejected(self, field, value):
        with pytest.raises(ValidationError):
            PhotoAnalysis.model_validate({**extraction(**{field: value}), "photoIndex": 1})

    def test_tasks_are_required(self):
        data = extraction()
        del data["tasks"]
        with pytest.raises(ValidationError):
            PhotoAnalysis.model_validate({**data, "photoIndex": 1})

    def test_numeric_quantity_accepted(self):
        analysis = PhotoAnalysis.model_validate({
            **extraction(materials=[{"name": "drywall", "status": "stored", "quantity": 12}]),
            "photoIndex": 2,
        })
        assert analysis.materials[0].quantity == "12"

    def test_degraded_record(self):
        analysis = PhotoAnalysis.degraded(3)

        assert analysis.error is True
        assert analysis.photo_index == 3
        assert analysis.caption == "Analysis temporarily unavailable"
        assert analysis.tasks == [] and analysis.personnel_count == 0

    def test_degraded_prompt_form_hides_placeholders(self):
        assert PhotoAnalysis.degraded(3).to_prompt_dict() == {"photoIndex": 3, "error": True}

    def test_prompt_form_uses_photo_index_alias(self, kitchen_extraction):
        analysis = PhotoAnalysis.model_validate({**kitchen_extraction, "photoIndex": 4})
        data = analysis.to_prompt_dict()

        assert data["photoIndex"] == 4
        assert "error" not in data

    def test_frozen(self):
        with pytest.raises(ValidationError):
            PhotoAnalysis.degraded(1).caption = "changed"


class TestDailyReportData:

    def test_defaults_are_empty(self):
        data = DailyReportData()
        assert data.sections == []
        assert data.personnel_summary.total_count == 0
        assert data.safety_summary.issues == []
        assert data.error is False

    def test_single_photo_citation(self):
        hazard = SectionHazard.model_validate({"type": "debris pile", "severity": "low", "photo": 2})
        assert hazard.photos == [2]

    def test_fallback_report(self):
        report = fallback_report()

        assert report.error is True
        assert report.site_summary == "Daily progress documented"
        assert report.next_day_plan == []
        [section] = report.sections
        assert section.space == "Unspecified"
        assert [t.name for t in section.tasks] == ["Progress documented"]
        assert section.tasks[0].confidence == 0.5


class TestPhotoRef:

    def test_base64_string(self):
        ref = PhotoRef.model_validate({"index": 2, "bytes": base64.b64encode(b"\xff\xd8raw").decode()})
        assert ref.order == 2
        assert ref.data == b"\xff\xd8raw"

    def test_raw_bytes(self):
        assert PhotoRef(data=b"abc").data == b"abc"

    def test_url(self):
        assert PhotoRef.model_validate({"order": 1, "url": "https://cdn.example.com/p.jpg"}).url

    def test_needs_a_source(self):
        with pytest.raises(ValidationError):
            PhotoRef.model_validate({"order": 1})

    def test_bad_base64(self):
        with pytest.raises(ValidationError):
            PhotoRef.model_validate({"bytes": "not base64!!"})


def test_result_response_shape():
    result = ReportResult(
        owner_markdown="owner",
        gc_markdown="gc",
        debug=ReportDebug(photos_analyzed=2, weather_included=False, model_used="fake"),
        analyses=[PhotoAnalysis.degraded(1), PhotoAnalysis.degraded(2)],
        report_data=fallback_report(),
        generated_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )

    assert result.to_response() == {
        "owner_markdown": "owner",
        "gc_markdown": "gc",
        "debug": {"photos_analyzed": 2, "weather_included": False, "model_used": "fake"},
    }
