"""Prompt templates."""

EXTRACT_PROMPT = """Analyze this construction site photo and return ONLY valid JSON in this exact format:
{
  "space": "Kitchen|Bathroom|Bedroom|Living|Exterior|Garage|Hall|Dining|Stair|Basement or empty string",
  "phase": "Demo|Framing|Electrical Rough|Plumbing Rough|Drywall|Paint|Flooring|Cabinets|Finish|Punch or empty string",
  "caption": "one-sentence literal description of what you see",
  "objects": ["list", "of", "visible", "objects"],
  "tasks": [{"name": "specific task observed", "confidence": 0.85}],
  "hazards": [{"type": "hazard type", "severity": "low|med|high"}],
  "personnel_count": 0,
  "equipment": [{"name": "tool or machine name", "category": "hand_tool|power_tool|heavy_machinery|vehicle"}],
  "materials": [{"name": "material type", "status": "delivered|in_use|stored", "quantity": "visible amount"}],
  "deliveries": [{"type": "delivery truck|material delivery|equipment delivery", "status": "active|completed"}],
  "safety_issues": [{"issue": "specific safety concern", "severity": "low|med|high", "ppe_compliance": "good|poor|unknown"}],
  "delaying_events": [{"event": "weather|missing_materials|equipment_failure|access_blocked", "impact": "low|med|high"}]
}

Rules:
- Be literal, no assumptions
- Prefer Kitchen/Bathroom if cabinets/fixtures/tile visible
- Tasks must be concrete construction work observed
- confidence is between 0 and 1
- personnel_count counts only workers visible in this photo
- If no construction work visible, use empty tasks array
- Selfies/non-construction photos should have "space": "" and "tasks": []
- Return only JSON, no other text"""


AGGREGATE_PROMPT = """Analyze these construction photo analyses for {project_name} on {date} and create a daily report summary.

Photo Analyses:
{analyses}

Entries marked "error": true could not be analyzed. Treat them as unknown, not as photos showing nothing.

Return ONLY valid JSON in this exact format:
{{
  "site_summary": "Brief summary of work observed across all photos",
  "sections": [
    {{
      "space": "Kitchen",
      "phase": "Cabinets",
      "tasks": [{{"name": "install base cabinets", "confidence": 0.82, "photos": [1, 3]}}],
      "hazards": [{{"type": "debris pile", "severity": "low", "photos": [2]}}]
    }}
  ],
  "personnel_summary": {{
    "total_count": 3,
    "notes": "Average crew size observed",
    "trades": [{{"trade": "Carpenters", "count": 2, "hours": 16, "photos": [1, 3]}}]
  }},
  "equipment_summary": [{{"name": "circular saw", "category": "power_tool", "photos": [1, 2]}}],
  "materials_summary": [{{"name": "lumber", "status": "delivered", "quantity": "2 pallets", "photos": [1]}}],
  "deliveries_summary": [{{"type": "material delivery", "status": "completed", "time": "morning", "photos": [1]}}],
  "safety_summary": {{
    "compliance": "good",
    "issues": [{{"issue": "hard hats worn", "severity": "low", "ppe_compliance": "good", "osha_reference": "", "photos": [1, 2]}}]
  }},
  "delays_summary": [{{"event": "weather delay", "impact": "low", "duration": "1 hour", "budget_impact": "none", "photos": []}}],
  "quality_control": [{{"item": "cabinet alignment checked", "status": "pass", "notes": "", "photos": [3]}}],
  "changes_since_yesterday": [],
  "next_day_plan": ["Continue cabinet installation in Kitchen"]
}}

Rules:
- Merge identical tasks across photos, combine photo indices
- Boost confidence slightly when multiple photos show same task
- Group by space then phase
- Severity and impact are one of low|med|high
- Equipment category is one of hand_tool|power_tool|heavy_machinery|vehicle
- Cite photo indices wherever an item was seen
- Labor hours are estimates for a standard 8-hour shift; omit "hours" when unknown
- If no valid tasks found, create one section with "Unspecified" space and "Progress documented" task
- Be specific and construction-focused
- Return only JSON, no other text"""
