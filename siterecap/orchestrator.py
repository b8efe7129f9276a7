"""Pipeline orchestration and layer coordination."""
import asyncio
import json
import logging
from datetime import datetime, timezone

# Support both direct execution and module import
try:
    from .client import ModelClient, parse_json
    from .config import Settings
    from .errors import NoPhotosError, UnreadablePhotosError
    from .merging import consolidate_sections, ensure_sections, ground_sections, restrict_citations
    from .models import (
        DailyReportData,
        PhotoAnalysis,
        PhotoRef,
        ReportDebug,
        ReportRequest,
        ReportResult,
        fallback_report,
    )
    from .photos import PhotoFetcher
    from .prompts import AGGREGATE_PROMPT, EXTRACT_PROMPT
    from .renderers import render_gc, render_owner
except ImportError:
    from client import ModelClient, parse_json
    from config import Settings
    from errors import NoPhotosError, UnreadablePhotosError
    from merging import consolidate_sections, ensure_sections, ground_sections, restrict_citations
    from models import (
        DailyReportData,
        PhotoAnalysis,
        PhotoRef,
        ReportDebug,
        ReportRequest,
        ReportResult,
        fallback_report,
    )
    from photos import PhotoFetcher
    from prompts import AGGREGATE_PROMPT, EXTRACT_PROMPT
    from renderers import render_gc, render_owner

logger = logging.getLogger(__name__)

_EXTRACTION_LISTS = (
    "objects", "tasks", "hazards", "equipment", "materials",
    "deliveries", "safety_issues", "delaying_events",
)
_SUMMARY_LISTS = (
    "sections", "equipment_summary", "materials_summary", "deliveries_summary",
    "delays_summary", "quality_control",
)


def _as_text(value, *keys: str) -> str:
    """Flatten a model-supplied value that should have been a string."""
    if isinstance(value, dict):
        for key in keys:
            if value.get(key):
                return str(value[key])
        return str(value)
    return "" if value is None else str(value)


class Extractor:
    """Stage A: extract structured observations from individual photos."""

    def __init__(self, api_client: ModelClient, timeout: float = 60.0, max_tokens: int = 2048):
        self.api = api_client
        self.timeout = timeout
        self.max_tokens = max_tokens

    async def analyze_photo(self, photo_bytes: bytes | None, photo_index: int) -> PhotoAnalysis:
        """Analyze one photo. Never raises; failures yield a degraded record."""
        try:
            if not photo_bytes:
                raise ValueError("no image data")

            content = await asyncio.wait_for(
                self.api.call(
                    EXTRACT_PROMPT,
                    image=photo_bytes,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                ),
                timeout=self.timeout,
            )
            data = self._normalize(parse_json(content))
            data["photoIndex"] = photo_index
            return PhotoAnalysis.model_validate(data)

        except Exception as e:
            logger.warning("Extraction failed for photo %d: %s", photo_index, e)
            return PhotoAnalysis.degraded(photo_index)

    async def extract_batch(
        self,
        images: list[bytes | None],
        max_concurrent: int = 4
    ) -> list[PhotoAnalysis]:
        """Extract all photos concurrently; result order matches ``images``."""
        semaphore = asyncio.Semaphore(max_concurrent)
        total = len(images)
        completed = 0

        async def extract_with_progress(photo_index: int, image: bytes | None) -> PhotoAnalysis:
            nonlocal completed
            async with semaphore:
                result = await self.analyze_photo(image, photo_index)
            completed += 1
            logger.debug("Progress: %d/%d photos", completed, total)
            return result

        return list(await asyncio.gather(
            *[extract_with_progress(i, image) for i, image in enumerate(images, 1)]
        ))

    @staticmethod
    def _normalize(data: dict) -> dict:
        """Normalize LLM response to handle variations in structure."""
        normalized = {
            k: v for k, v in data.items()
            if k not in ("photoIndex", "photo_index", "error")
        }

        for field in ("space", "phase", "caption"):
            value = normalized.get(field)
            if value is None or value in ("''", '""'):
                normalized[field] = ""

        for field in _EXTRACTION_LISTS:
            if normalized.get(field) is None:
                normalized[field] = []

        if normalized.get("personnel_count") is None:
            normalized["personnel_count"] = 0

        if isinstance(normalized["objects"], list):
            normalized["objects"] = [_as_text(o, "name") for o in normalized["objects"]]

        return normalized


class Aggregator:
    """Stage B: merge all photo analyses of a project-day into one report."""

    def __init__(self, api_client: ModelClient, timeout: float = 120.0, max_tokens: int = 4096):
        self.api = api_client
        self.timeout = timeout
        self.max_tokens = max_tokens

    async def aggregate(
        self,
        analyses: list[PhotoAnalysis],
        project_name: str,
        date: str
    ) -> DailyReportData:
        """Aggregate photo analyses. Never raises; failures yield the fallback report."""
        try:
            prompt = AGGREGATE_PROMPT.format(
                project_name=project_name or "the project",
                date=date,
                analyses=json.dumps([a.to_prompt_dict() for a in analyses], indent=2),
            )
            content = await asyncio.wait_for(
                self.api.call(prompt, max_tokens=self.max_tokens, timeout=self.timeout),
                timeout=self.timeout,
            )
            report = DailyReportData.model_validate(self._normalize(parse_json(content)))

            sections = consolidate_sections(report.sections)
            sections = ground_sections(sections, analyses)
            report = report.model_copy(update={"sections": ensure_sections(sections)})
            return restrict_citations(report, analyses)

        except Exception as e:
            logger.warning("Aggregation failed for %s on %s: %s", project_name, date, e)
            return fallback_report()

    @staticmethod
    def _normalize(data: dict) -> dict:
        """Normalize LLM response to handle variations in structure."""
        normalized = {k: v for k, v in data.items() if k != "error"}

        normalized["site_summary"] = _as_text(
            normalized.get("site_summary"), "summary", "text"
        )

        for field in _SUMMARY_LISTS:
            value = normalized.get(field)
            if value is None:
                normalized[field] = []
            elif isinstance(value, dict):
                normalized[field] = [value]

        personnel = normalized.get("personnel_summary")
        if personnel is None:
            normalized["personnel_summary"] = {}
        elif isinstance(personnel, (int, float)):
            normalized["personnel_summary"] = {"total_count": int(personnel)}

        safety = normalized.get("safety_summary")
        if safety is None:
            normalized["safety_summary"] = {}
        elif isinstance(safety, list):
            normalized["safety_summary"] = {"issues": safety}

        for field in ("changes_since_yesterday", "next_day_plan"):
            items = normalized.get(field)
            if items is None:
                normalized[field] = []
            elif isinstance(items, str):
                normalized[field] = [items] if items.strip() else []
            elif isinstance(items, list):
                normalized[field] = [
                    _as_text(item, "task", "item", "text", "description")
                    for item in items
                ]

        return normalized


def order_photos(photos: list[PhotoRef]) -> list[PhotoRef]:
    """Submission order; an explicit ``order`` overrides list position."""
    positioned = [
        (ref.order if ref.order is not None else position, position, ref)
        for position, ref in enumerate(photos, 1)
    ]
    return [ref for _, _, ref in sorted(positioned, key=lambda p: (p[0], p[1]))]


class ReportPipeline:
    """Photos for one project-day in, owner and GC documents out."""

    def __init__(
        self,
        api_client: ModelClient,
        fetcher: PhotoFetcher | None = None,
        settings: Settings | None = None
    ):
        settings = settings or Settings()
        self.extractor = Extractor(api_client, timeout=settings.extract_timeout)
        self.aggregator = Aggregator(api_client, timeout=settings.aggregate_timeout)
        self.fetcher = fetcher or PhotoFetcher(timeout=settings.fetch_timeout)
        self.max_concurrent = settings.max_concurrent
        self.model_used = getattr(api_client, "model", "unknown")

    async def run(self, request: ReportRequest) -> ReportResult:
        """Run extract -> aggregate -> render for one project-day."""
        if not request.photos:
            raise NoPhotosError(request.project_id, request.date)

        refs = order_photos(request.photos)
        logger.info(
            "Generating report for project %s on %s from %d photos",
            request.project_id, request.date, len(refs)
        )

        images = await self._resolve_all(refs)
        if all(image is None for image in images):
            raise UnreadablePhotosError(len(refs))

        analyses = await self.extractor.extract_batch(images, self.max_concurrent)
        failed = sum(1 for a in analyses if a.error)
        if failed:
            logger.warning("%d of %d photos could not be analyzed", failed, len(analyses))

        report_data = await self.aggregator.aggregate(analyses, request.project_name, request.date)

        owner_md = render_owner(report_data, request.weather, request.project_name, request.date)
        gc_md = render_gc(report_data, request.weather, request.project_name, request.date)

        return ReportResult(
            owner_markdown=owner_md,
            gc_markdown=gc_md,
            debug=ReportDebug(
                photos_analyzed=len(analyses),
                weather_included=request.weather is not None,
                model_used=self.model_used,
            ),
            analyses=analyses,
            report_data=report_data,
            weather=request.weather,
            generated_at=datetime.now(timezone.utc),
        )

    async def handle(self, payload: dict) -> dict:
        """Entry point for request handlers: validate a raw payload and run."""
        request = ReportRequest.model_validate(payload)
        result = await self.run(request)
        return result.to_response()

    async def _resolve_all(self, refs: list[PhotoRef]) -> list[bytes | None]:
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def resolve(photo_index: int, ref: PhotoRef) -> bytes | None:
            async with semaphore:
                return await self.fetcher.resolve(ref, photo_index)

        return list(await asyncio.gather(
            *[resolve(i, ref) for i, ref in enumerate(refs, 1)]
        ))
