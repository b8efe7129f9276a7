"""Data models for pipeline layers."""
import base64
import binascii
from datetime import datetime
from typing import Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

Space = Literal[
    "Kitchen", "Bathroom", "Bedroom", "Living", "Exterior",
    "Garage", "Hall", "Dining", "Stair", "Basement", "",
]
Phase = Literal[
    "Demo", "Framing", "Electrical Rough", "Plumbing Rough", "Drywall",
    "Paint", "Flooring", "Cabinets", "Finish", "Punch", "",
]
Severity = Literal["low", "med", "high"]
EquipmentCategory = Literal["hand_tool", "power_tool", "heavy_machinery", "vehicle"]

PLACEHOLDER_CAPTION = "Analysis temporarily unavailable"
FALLBACK_SPACE = "Unspecified"
FALLBACK_TASK = "Progress documented"
FALLBACK_SUMMARY = "Daily progress documented"


# --- Stage A: per-photo extraction ---

class ObservedTask(BaseModel):
    name: str
    confidence: float = Field(ge=0.0, le=1.0)


class Hazard(BaseModel):
    type: str
    severity: Severity


class Equipment(BaseModel):
    name: str
    category: EquipmentCategory


class Material(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    status: str = ""
    quantity: str = ""


class Delivery(BaseModel):
    type: str
    status: str = ""


class SafetyIssue(BaseModel):
    issue: str
    severity: Severity
    ppe_compliance: str = "unknown"


class DelayingEvent(BaseModel):
    event: str
    impact: Severity


class PhotoAnalysis(BaseModel):
    """Structured observations extracted from one photo.

    When ``error`` is set the remaining fields are placeholders and mean
    "unknown", not "nothing observed".
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    photo_index: int = Field(alias="photoIndex", ge=1)
    space: Space
    phase: Phase
    caption: str = ""
    objects: list[str] = Field(default_factory=list)
    tasks: list[ObservedTask]
    hazards: list[Hazard] = Field(default_factory=list)
    personnel_count: int = Field(default=0, ge=0)
    equipment: list[Equipment] = Field(default_factory=list)
    materials: list[Material] = Field(default_factory=list)
    deliveries: list[Delivery] = Field(default_factory=list)
    safety_issues: list[SafetyIssue] = Field(default_factory=list)
    delaying_events: list[DelayingEvent] = Field(default_factory=list)
    error: bool = False

    @classmethod
    def degraded(cls, photo_index: int, caption: str = PLACEHOLDER_CAPTION) -> "PhotoAnalysis":
        """Placeholder record for a photo whose extraction failed."""
        return cls(photo_index=photo_index, space="", phase="", caption=caption, tasks=[], error=True)

    def to_prompt_dict(self) -> dict:
        """Serialized form sent to the aggregation model."""
        if self.error:
            return {"photoIndex": self.photo_index, "error": True}
        return self.model_dump(by_alias=True, exclude={"error"})


# --- Stage B: aggregated daily report ---

class Cited(BaseModel):
    """Record that carries photo-index provenance."""
    photos: list[int] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _single_photo(cls, data):
        if isinstance(data, dict) and "photos" not in data and "photo" in data:
            data = dict(data)
            photo = data.pop("photo")
            data["photos"] = [] if photo is None else [photo]
        return data


class SectionTask(Cited):
    name: str
    confidence: float = Field(ge=0.0, le=1.0)


class SectionHazard(Cited):
    type: str
    severity: Severity


class Section(BaseModel):
    """Merged tasks and hazards for one (space, phase) pair."""
    space: str
    phase: str = ""
    tasks: list[SectionTask] = Field(default_factory=list)
    hazards: list[SectionHazard] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.space.strip().casefold(), self.phase.strip().casefold())


class TradeCrew(Cited):
    trade: str
    count: int = Field(default=0, ge=0)
    hours: float | None = Field(default=None, ge=0)


class PersonnelSummary(BaseModel):
    total_count: int = Field(default=0, ge=0)
    notes: str = ""
    trades: list[TradeCrew] = Field(default_factory=list)


class EquipmentSummaryItem(Cited):
    name: str
    category: EquipmentCategory


class MaterialSummaryItem(Cited):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    status: str = ""
    quantity: str = ""


class DeliverySummaryItem(Cited):
    type: str
    status: str = ""
    time: str = ""


class SafetySummaryIssue(Cited):
    issue: str
    severity: Severity
    ppe_compliance: str = ""
    osha_reference: str = ""


class SafetySummary(BaseModel):
    compliance: str = ""
    issues: list[SafetySummaryIssue] = Field(default_factory=list)


class DelaySummaryItem(Cited):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    event: str
    impact: Severity
    duration: str = ""
    budget_impact: str = ""


class QualityControlItem(Cited):
    item: str
    status: str = ""
    notes: str = ""


class DailyReportData(BaseModel):
    """Aggregated report for one project-day."""
    model_config = ConfigDict(frozen=True)

    site_summary: str = ""
    sections: list[Section] = Field(default_factory=list)
    personnel_summary: PersonnelSummary = Field(default_factory=PersonnelSummary)
    equipment_summary: list[EquipmentSummaryItem] = Field(default_factory=list)
    materials_summary: list[MaterialSummaryItem] = Field(default_factory=list)
    deliveries_summary: list[DeliverySummaryItem] = Field(default_factory=list)
    safety_summary: SafetySummary = Field(default_factory=SafetySummary)
    delays_summary: list[DelaySummaryItem] = Field(default_factory=list)
    quality_control: list[QualityControlItem] = Field(default_factory=list)
    changes_since_yesterday: list[str] = Field(default_factory=list)
    next_day_plan: list[str] = Field(default_factory=list)
    error: bool = False


def fallback_section(hazards: list[SectionHazard] | None = None) -> Section:
    """The single placeholder section used when no task was recognized."""
    return Section(
        space=FALLBACK_SPACE,
        phase="",
        tasks=[SectionTask(name=FALLBACK_TASK, confidence=0.5, photos=[])],
        hazards=hazards or [],
    )


def fallback_report() -> DailyReportData:
    """Report used when the aggregation call itself failed."""
    return DailyReportData(
        site_summary=FALLBACK_SUMMARY,
        sections=[fallback_section()],
        error=True,
    )


# --- Pipeline boundary ---

class Weather(BaseModel):
    temperature: int | float
    description: str
    code: int | None = None


class PhotoRef(BaseModel):
    """One photo to analyze: inline bytes or a URL to fetch them from."""
    order: int | None = Field(default=None, validation_alias=AliasChoices("order", "index"))
    data: bytes | None = Field(default=None, validation_alias=AliasChoices("data", "bytes"))
    url: str | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _decode_base64(cls, value):
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise ValueError(f"photo bytes are not valid base64: {e}") from e
        return value

    @model_validator(mode="after")
    def _has_source(self):
        if self.data is None and not self.url:
            raise ValueError("photo needs either bytes or a url")
        return self


class ReportRequest(BaseModel):
    project_id: str
    project_name: str = ""
    date: str
    photos: list[PhotoRef] = Field(default_factory=list)
    weather: Weather | None = None


class ReportDebug(BaseModel):
    photos_analyzed: int
    weather_included: bool
    model_used: str


class ReportResult(BaseModel):
    owner_markdown: str
    gc_markdown: str
    debug: ReportDebug
    analyses: list[PhotoAnalysis]
    report_data: DailyReportData
    weather: Weather | None = None
    generated_at: datetime

    def to_response(self) -> dict:
        """Shape returned to the calling request handler."""
        return {
            "owner_markdown": self.owner_markdown,
            "gc_markdown": self.gc_markdown,
            "debug": self.debug.model_dump(),
        }
