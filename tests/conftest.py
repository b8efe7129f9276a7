"""Shared fixtures."""
import pytest

from fakes import aggregation, extraction
from siterecap.models import DailyReportData


@pytest.fixture
def kitchen_extraction():
    data = extraction()
    del data["caption"]
    return data


@pytest.fixture
def kitchen_aggregation():
    return aggregation()


@pytest.fixture
def full_report_data():
    return DailyReportData.model_validate({
        "site_summary": "Framing and electrical rough-in progressing on the first floor.",
        "sections": [
            {
                "space": "Kitchen",
                "phase": "Electrical Rough",
                "tasks": [
                    {"name": "pull 12 AWG wire for 20 amp circuits", "confidence": 0.9, "photos": [1, 2]},
                    {"name": "mount j-box for island", "confidence": 0.65, "photos": [2]},
                ],
                "hazards": [{"type": "exposed wiring", "severity": "med", "photo": 2}],
            },
            {
                "space": "Living",
                "phase": "Framing",
                "tasks": [{"name": "frame 2x4 partition wall 16\" o.c.", "confidence": 0.774, "photos": [3]}],
                "hazards": [],
            },
        ],
        "personnel_summary": {
            "total_count": 4,
            "notes": "Electricians and carpenters",
            "trades": [
                {"trade": "Electricians", "count": 2, "hours": 16, "photos": [1, 2]},
                {"trade": "Carpenters", "count": 2, "photos": [3]},
            ],
        },
        "equipment_summary": [{"name": "circular saw", "category": "power_tool", "photos": [3]}],
        "materials_summary": [{"name": "lumber", "status": "delivered", "quantity": 40, "photos": [3]}],
        "deliveries_summary": [{"type": "material delivery", "status": "completed", "time": "morning", "photos": [3]}],
        "safety_summary": {
            "compliance": "good",
            "issues": [{
                "issue": "ladder on uneven floor",
                "severity": "high",
                "ppe_compliance": "good",
                "osha_reference": "1926.1053",
                "photos": [2],
            }],
        },
        "delays_summary": [{"event": "missing_materials", "impact": "low", "duration": "1 hour", "budget_impact": "none"}],
        "quality_control": [{"item": "box heights checked", "status": "pass", "photos": [2]}],
        "changes_since_yesterday": ["Partition wall framing started"],
        "next_day_plan": ["Finish electrical rough-in in Kitchen", "Start HVAC ductwork"],
    })
