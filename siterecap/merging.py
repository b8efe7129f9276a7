"""Deterministic merge rules applied on top of the aggregation model's output."""
try:
    from .models import DailyReportData, PhotoAnalysis, Section, SectionHazard, SectionTask, fallback_section
except ImportError:
    from models import DailyReportData, PhotoAnalysis, Section, SectionHazard, SectionTask, fallback_section

CORROBORATION_BOOST = 0.05


def _norm(text: str) -> str:
    return " ".join(text.split()).casefold()


def _union(*photo_lists: list[int]) -> list[int]:
    return sorted({p for photos in photo_lists for p in photos})


def boosted_confidence(confidences: list[float]) -> float:
    """Max confidence plus a small boost per additional corroborating photo.

    Never lower than the max, never above 1.0.
    """
    if not confidences:
        return 0.0
    boosted = max(confidences) + CORROBORATION_BOOST * (len(confidences) - 1)
    return round(min(1.0, boosted), 4)


def _merge_tasks(tasks: list[SectionTask]) -> list[SectionTask]:
    merged: dict[str, list[SectionTask]] = {}
    for task in tasks:
        merged.setdefault(_norm(task.name), []).append(task)

    result = []
    for group in merged.values():
        if len(group) == 1:
            result.append(group[0].model_copy(update={"photos": _union(group[0].photos)}))
            continue
        result.append(SectionTask(
            name=group[0].name,
            confidence=boosted_confidence([t.confidence for t in group]),
            photos=_union(*(t.photos for t in group)),
        ))
    return result


def _merge_hazards(hazards: list[SectionHazard]) -> list[SectionHazard]:
    merged: dict[tuple[str, str], SectionHazard] = {}
    for hazard in hazards:
        key = (_norm(hazard.type), hazard.severity)
        if key in merged:
            existing = merged[key]
            merged[key] = existing.model_copy(update={"photos": _union(existing.photos, hazard.photos)})
        else:
            merged[key] = hazard.model_copy(update={"photos": _union(hazard.photos)})
    return list(merged.values())


def consolidate_sections(sections: list[Section]) -> list[Section]:
    """Merge sections sharing (space, phase) and duplicate tasks/hazards within them.

    First-seen order is kept for sections, tasks and hazards.
    """
    grouped: dict[tuple[str, str], list[Section]] = {}
    for section in sections:
        grouped.setdefault(section.key, []).append(section)

    result = []
    for group in grouped.values():
        first = group[0]
        result.append(Section(
            space=first.space,
            phase=first.phase,
            tasks=_merge_tasks([t for s in group for t in s.tasks]),
            hazards=_merge_hazards([h for s in group for h in s.hazards]),
        ))
    return result


def ground_sections(sections: list[Section], analyses: list[PhotoAnalysis]) -> list[Section]:
    """Reconcile reported tasks with the per-photo observations behind them.

    A task picks up every non-error photo with the same (space, phase) that
    reported a task of the same name, and its confidence is raised to the
    corroborated value when the model came in lower.
    """
    observed: dict[tuple[str, str, str], dict[int, float]] = {}
    for analysis in analyses:
        if analysis.error:
            continue
        for task in analysis.tasks:
            key = (_norm(analysis.space), _norm(analysis.phase), _norm(task.name))
            by_photo = observed.setdefault(key, {})
            by_photo[analysis.photo_index] = max(task.confidence, by_photo.get(analysis.photo_index, 0.0))

    grounded = []
    for section in sections:
        space, phase = section.key
        tasks = []
        for task in section.tasks:
            sources = observed.get((space, phase, _norm(task.name)))
            if not sources:
                tasks.append(task)
                continue
            tasks.append(task.model_copy(update={
                "photos": _union(task.photos, list(sources)),
                "confidence": max(task.confidence, boosted_confidence(list(sources.values()))),
            }))
        grounded.append(section.model_copy(update={"tasks": tasks}))
    return grounded


def ensure_sections(sections: list[Section]) -> list[Section]:
    """Fall back to the single Unspecified section when no task was recognized."""
    if any(section.tasks for section in sections):
        return sections
    hazards = _merge_hazards([h for s in sections for h in s.hazards])
    return [fallback_section(hazards)]


def _cited(items: list, valid: set[int]) -> list:
    return [
        item.model_copy(update={"photos": _union([p for p in item.photos if p in valid])})
        for item in items
    ]


def restrict_citations(report: DailyReportData, analyses: list[PhotoAnalysis]) -> DailyReportData:
    """Keep only citations of photos from this run whose extraction succeeded."""
    valid = {a.photo_index for a in analyses if not a.error}
    sections = [
        s.model_copy(update={"tasks": _cited(s.tasks, valid), "hazards": _cited(s.hazards, valid)})
        for s in report.sections
    ]
    personnel = report.personnel_summary
    safety = report.safety_summary
    return report.model_copy(update={
        "sections": sections,
        "personnel_summary": personnel.model_copy(update={"trades": _cited(personnel.trades, valid)}),
        "equipment_summary": _cited(report.equipment_summary, valid),
        "materials_summary": _cited(report.materials_summary, valid),
        "deliveries_summary": _cited(report.deliveries_summary, valid),
        "safety_summary": safety.model_copy(update={"issues": _cited(safety.issues, valid)}),
        "delays_summary": _cited(report.delays_summary, valid),
        "quality_control": _cited(report.quality_control, valid),
    })
