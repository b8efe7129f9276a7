"""Tests for cross-photo aggregation."""
import json
import re

import pytest

from fakes import FakeClient, aggregation, extraction
from siterecap.models import PhotoAnalysis
from siterecap.orchestrator import Aggregator


def _analysis(index, **overrides):
    return PhotoAnalysis.model_validate({**extraction(**overrides), "photoIndex": index})


def _prompt_analyses(prompt: str) -> list:
    """Pull the serialized analyses back out of the aggregation prompt."""
    match = re.search(r"Photo Analyses:\n(\[.*?\n\])\n", prompt, re.DOTALL)
    return json.loads(match.group(1))


@pytest.mark.asyncio
async def test_aggregates_report(kitchen_aggregation):
    client = FakeClient(aggregation=kitchen_aggregation)

    report = await Aggregator(client).aggregate([_analysis(1)], "Maple St Remodel", "2024-05-01")

    assert report.error is False
    assert report.site_summary == "Cabinet installation underway in the kitchen."
    assert report.sections[0].tasks[0].photos == [1]
    assert report.personnel_summary.total_count == 2
    prompt = client.aggregation_calls[0]["prompt"]
    assert "Maple St Remodel" in prompt and "2024-05-01" in prompt


@pytest.mark.asyncio
async def test_error_entries_sent_as_unknown(kitchen_aggregation):
    client = FakeClient(aggregation=kitchen_aggregation)
    analyses = [_analysis(1), PhotoAnalysis.degraded(2)]

    await Aggregator(client).aggregate(analyses, "Maple St Remodel", "2024-05-01")

    sent = _prompt_analyses(client.aggregation_calls[0]["prompt"])
    assert sent[0]["photoIndex"] == 1 and sent[0]["space"] == "Kitchen"
    assert sent[1] == {"photoIndex": 2, "error": True}


@pytest.mark.asyncio
async def test_identical_tasks_merged_across_photos():
    analyses = [
        _analysis(1, tasks=[{"name": "install base cabinets", "confidence": 0.7}]),
        _analysis(2, space="Bathroom", phase="Paint", tasks=[{"name": "prime walls", "confidence": 0.6}]),
        _analysis(3, tasks=[{"name": "install base cabinets", "confidence": 0.8}]),
    ]
    response = aggregation(sections=[
        {"space": "Kitchen", "phase": "Cabinets",
         "tasks": [{"name": "install base cabinets", "confidence": 0.7, "photos": [1]}], "hazards": []},
        {"space": "Bathroom", "phase": "Paint",
         "tasks": [{"name": "prime walls", "confidence": 0.6, "photos": [2]}], "hazards": []},
        {"space": "Kitchen", "phase": "Cabinets",
         "tasks": [{"name": "install base cabinets", "confidence": 0.8, "photos": [3]}], "hazards": []},
    ])

    report = await Aggregator(FakeClient(aggregation=response)).aggregate(analyses, "Maple", "2024-05-01")

    kitchen = report.sections[0]
    assert [s.space for s in report.sections] == ["Kitchen", "Bathroom"]
    [task] = kitchen.tasks
    assert task.photos == [1, 3]
    assert task.confidence >= 0.8


@pytest.mark.asyncio
async def test_no_tasks_anywhere_yields_fallback_section():
    analyses = [_analysis(i, tasks=[]) for i in (1, 2)]
    client = FakeClient(aggregation=aggregation(sections=[]))

    report = await Aggregator(client).aggregate(analyses, "Maple", "2024-05-01")

    assert report.error is False
    [section] = report.sections
    assert section.space == "Unspecified"
    assert section.tasks[0].name == "Progress documented"


@pytest.mark.asyncio
async def test_missing_sections_key_yields_fallback_section():
    response = aggregation()
    del response["sections"]

    report = await Aggregator(FakeClient(aggregation=response)).aggregate([_analysis(1)], "Maple", "2024-05-01")

    assert [s.space for s in report.sections] == ["Unspecified"]


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    "The photos show a kitchen.",
    aggregation(sections=[{"space": "Kitchen", "tasks": [{"name": "x", "confidence": 3}]}]),
    aggregation(delays_summary=[{"event": "rain", "impact": "severe"}]),
    TimeoutError(),
    RuntimeError("overloaded"),
])
async def test_failures_yield_fallback_report(response):
    client = FakeClient(aggregation=response)

    report = await Aggregator(client).aggregate([_analysis(1)], "Maple", "2024-05-01")

    assert report.error is True
    assert report.site_summary == "Daily progress documented"
    assert [s.space for s in report.sections] == ["Unspecified"]
    assert report.next_day_plan == []
    assert report.equipment_summary == []


@pytest.mark.asyncio
async def test_all_error_inputs_tolerated():
    analyses = [PhotoAnalysis.degraded(i) for i in (1, 2, 3)]
    client = FakeClient(aggregation=aggregation(sections=[], site_summary="No usable photos."))

    report = await Aggregator(client).aggregate(analyses, "Maple", "2024-05-01")

    assert [s.space for s in report.sections] == ["Unspecified"]


@pytest.mark.asyncio
async def test_loose_shapes_normalized():
    response = aggregation(
        site_summary={"summary": "Work continued."},
        personnel_summary=5,
        safety_summary=[{"issue": "no guardrail", "severity": "high", "photo": 2}],
        next_day_plan=[{"task": "Set countertops"}, "Install backsplash"],
        changes_since_yesterday="Cabinets delivered",
        equipment_summary=None,
    )

    analyses = [_analysis(1), _analysis(2)]
    report = await Aggregator(FakeClient(aggregation=response)).aggregate(analyses, "Maple", "2024-05-01")

    assert report.error is False
    assert report.site_summary == "Work continued."
    assert report.personnel_summary.total_count == 5
    assert report.safety_summary.issues[0].photos == [2]
    assert report.next_day_plan == ["Set countertops", "Install backsplash"]
    assert report.changes_since_yesterday == ["Cabinets delivered"]


@pytest.mark.asyncio
async def test_citations_outside_the_run_are_dropped():
    client = FakeClient(aggregation=aggregation(
        sections=[{"space": "Kitchen", "phase": "Cabinets", "tasks": [
            {"name": "install base cabinets", "confidence": 0.82, "photos": [7, 2, 1]},
        ]}],
        personnel_summary={"total_count": 2, "trades": [{"trade": "Carpenters", "count": 2, "photos": [2, 7]}]},
    ))

    report = await Aggregator(client).aggregate([_analysis(1), PhotoAnalysis.degraded(2)], "Maple St Remodel", "2024-05-01")

    assert report.sections[0].tasks[0].photos == [1]
    assert report.personnel_summary.trades[0].photos == []
