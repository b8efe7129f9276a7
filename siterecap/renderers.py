"""Markdown renderers for the owner and GC audiences.

Both work from the same ``DailyReportData``. Sections without data are left
out entirely, and item order is whatever the aggregation produced.
"""
import re

try:
    from .models import DailyReportData, Weather
    from .rounding import round_half_up
except ImportError:
    from models import DailyReportData, Weather
    from rounding import round_half_up

OWNER_TASK_LIMIT = 6
BULLET = "•"

_NUMBER = r"\d+(?:\.\d+)?(?:[-\s]\d+/\d+|/\d+)?"
_UNIT = (
    r"(?:\"|''|'|in\.|(?:inches|inch|feet|foot|ft|mm|cm|lf|sf|sq\.?\s?ft"
    r"|gauge|ga|psi|amps?|awg|volts?|v)\b\.?)"
)
_MEASUREMENT = re.compile(
    rf"\b{_NUMBER}\s*(?:[x×]\s*{_NUMBER}\s*{_UNIT}?|{_UNIT})(?:\s*o\.?c\.?)?",
    re.IGNORECASE,
)

# Longest phrases first so "rough-in" wins over shorter overlaps.
_PLAIN_TERMS = [
    (r"punch[\s-]list", "final touch-ups"),
    (r"rough[\s-]in", "preparation"),
    (r"top[\s-]out", "plumbing preparation"),
    (r"trim[\s-]out", "finishing"),
    (r"mud and tape|tape and mud", "drywall finishing"),
    (r"gypsum wallboard|sheetrock|gwb", "drywall"),
    (r"junction box(?:es)?|j-box(?:es)?", "electrical boxes"),
    (r"mep", "mechanical, electrical and plumbing"),
    (r"hvac", "heating and cooling"),
    (r"ductwork", "air ducts"),
    (r"sheathing", "wall and roof panels"),
    (r"blocking", "framing supports"),
    (r"romex", "wiring"),
    (r"pex", "water lines"),
]
_PLAIN_PATTERNS = [
    (re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE), plain)
    for pattern, plain in _PLAIN_TERMS
]


def _tidy(text: str) -> str:
    text = re.sub(r"\(\s*\)", "", text)
    text = re.sub(r"\s+([,;:.)])", r"\1", text)
    return " ".join(text.split()).strip(" -,;:")


def strip_measurements(text: str) -> str:
    """Remove dimension and unit tokens such as 2x4, 1/2\" or 16\" o.c."""
    return _tidy(_MEASUREMENT.sub(" ", text)) or text


def plain_language(text: str) -> str:
    """Swap trade vocabulary for words a homeowner would use."""
    for pattern, plain in _PLAIN_PATTERNS:
        text = pattern.sub(plain, text)
    return text


def weather_badge(weather: Weather | None) -> str:
    if weather is None:
        return "—"
    return f"🌤️ {weather.temperature}°F {weather.description}"


def percent(confidence: float) -> str:
    return f"{round_half_up(confidence * 100)}%"


def cite(photos: list[int]) -> str:
    """GC provenance suffix."""
    if not photos:
        return ""
    return f" (Photos: {', '.join(str(p) for p in photos)})"


def _bullet(text: str) -> str:
    return f"{BULLET} {text}"


def _join(*parts: str, sep: str = " - ") -> str:
    return sep.join(p for p in parts if p)


def _document(header: list[str], blocks: list[list[str]]) -> str:
    return "\n\n".join("\n".join(block) for block in [header, *blocks] if block) + "\n"


def render_owner(
    data: DailyReportData,
    weather: Weather | None = None,
    project_name: str = "",
    date: str = ""
) -> str:
    """Short plain-language update for the property owner."""
    header = [
        f"# Daily Update - {project_name}",
        f"**{date}** {BULLET} {weather_badge(weather)}",
    ]
    blocks = []

    if data.site_summary:
        blocks.append(["## Today's Progress", data.site_summary])

    tasks = [task for section in data.sections for task in section.tasks][:OWNER_TASK_LIMIT]
    if tasks:
        blocks.append(["## Work Completed", *[
            _bullet(f"{plain_language(strip_measurements(t.name))} ({percent(t.confidence)})")
            for t in tasks
        ]])

    crew = data.personnel_summary.total_count
    if crew > 0:
        blocks.append(["## Crew on Site", _bullet(f"{crew} workers present")])

    if data.deliveries_summary:
        blocks.append(["## Deliveries", *[
            _bullet(_join(d.type, d.status)) for d in data.deliveries_summary
        ]])

    if data.safety_summary.compliance:
        blocks.append([
            "## Safety",
            _bullet(f"Site safety compliance: {data.safety_summary.compliance}"),
        ])

    if data.delays_summary:
        blocks.append(["## Schedule Notes", *[
            _bullet(f"{plain_language(d.event)} ({d.impact} impact)") for d in data.delays_summary
        ]])

    if data.next_day_plan:
        blocks.append(["## What's Next", *[
            _bullet(plain_language(strip_measurements(item))) for item in data.next_day_plan
        ]])

    return _document(header, blocks)


def _manpower(data: DailyReportData) -> list[str]:
    personnel = data.personnel_summary
    lines = []
    if personnel.total_count > 0:
        lines.append(_bullet(f"Total crew: {personnel.total_count} workers"))
    if personnel.notes and (lines or personnel.trades):
        lines.append(_bullet(f"Notes: {personnel.notes}"))
    for crew in personnel.trades:
        detail = f"{crew.count} workers"
        if crew.hours is not None:
            detail += f", {crew.hours:g} labor-hours"
        lines.append(_bullet(f"{crew.trade}: {detail}{cite(crew.photos)}"))
    return ["## Manpower", *lines] if lines else []


def render_gc(
    data: DailyReportData,
    weather: Weather | None = None,
    project_name: str = "",
    date: str = ""
) -> str:
    """Full technical report for the general contractor, citing source photos."""
    header = [
        f"# GC Daily Report - {project_name}",
        f"**{date}** {BULLET} {weather_badge(weather)}",
    ]
    blocks = []

    if data.site_summary:
        blocks.append(["## Site Summary", data.site_summary])

    blocks.append(_manpower(data))

    if data.equipment_summary:
        blocks.append(["## Equipment on Site", *[
            _bullet(f"{e.name} - {e.category.replace('_', ' ')}{cite(e.photos)}")
            for e in data.equipment_summary
        ]])

    if data.materials_summary:
        blocks.append(["## Materials", *[
            _bullet(f"{_join(m.name, _join(m.status, m.quantity, sep=', '))}{cite(m.photos)}")
            for m in data.materials_summary
        ]])

    if data.deliveries_summary:
        blocks.append(["## Deliveries", *[
            _bullet(
                _join(d.type, d.status)
                + (f" ({d.time})" if d.time else "")
                + cite(d.photos)
            )
            for d in data.deliveries_summary
        ]])

    for section in data.sections:
        lines = [f"## {_join(section.space, section.phase)}"]
        if section.tasks:
            lines.append("### Tasks Completed")
            lines.extend(
                _bullet(f"{t.name} - {percent(t.confidence)}{cite(t.photos)}")
                for t in section.tasks
            )
        if section.hazards:
            lines.append("### Safety Notes")
            lines.extend(
                _bullet(f"{h.type} - {h.severity.upper()}{cite(h.photos)}")
                for h in section.hazards
            )
        blocks.append(lines)

    if data.quality_control:
        blocks.append(["## Quality Control", *[
            _bullet(
                _join(q.item, q.status)
                + (f": {q.notes}" if q.notes else "")
                + cite(q.photos)
            )
            for q in data.quality_control
        ]])

    safety = data.safety_summary
    if safety.compliance or safety.issues:
        lines = ["## Safety Summary"]
        if safety.compliance:
            lines.append(_bullet(f"Overall compliance: {safety.compliance}"))
        for issue in safety.issues:
            detail = [issue.severity.upper()]
            if issue.ppe_compliance:
                detail.append(f"PPE: {issue.ppe_compliance}")
            if issue.osha_reference:
                detail.append(f"OSHA {issue.osha_reference}")
            lines.append(_bullet(f"{issue.issue} - {', '.join(detail)}{cite(issue.photos)}"))
        blocks.append(lines)

    if data.delays_summary:
        lines = ["## Delays & Issues"]
        for delay in data.delays_summary:
            detail = [f"{delay.impact} impact"]
            if delay.duration:
                detail.append(f"duration: {delay.duration}")
            if delay.budget_impact:
                detail.append(f"budget impact: {delay.budget_impact}")
            lines.append(_bullet(f"{delay.event} - {', '.join(detail)}{cite(delay.photos)}"))
        blocks.append(lines)

    if data.changes_since_yesterday:
        blocks.append(["## Changes Since Yesterday", *[
            _bullet(change) for change in data.changes_since_yesterday
        ]])

    if data.next_day_plan:
        blocks.append(["## Tomorrow's Plan", *[_bullet(item) for item in data.next_day_plan]])

    return _document(header, blocks)
