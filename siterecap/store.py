"""File-based storage for generated reports, one record per project-day."""
import json
from datetime import date
from pathlib import Path

try:
    from .models import ReportResult
except ImportError:
    from models import ReportResult


class ReportStore:
    """Reports organized by date: YYYY-MM/DD/<project_id>.json

    Saving the same (project, date) again replaces the earlier record.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _dir(self, report_date: date) -> Path:
        return self.base_dir / report_date.strftime("%Y-%m") / report_date.strftime("%d")

    def path(self, project_id: str, report_date: date) -> Path:
        return self._dir(report_date) / f"{project_id}.json"

    def save(self, project_id: str, report_date: date, result: ReportResult) -> Path:
        """Write the record plus owner/GC markdown files next to it."""
        day_dir = self._dir(report_date)
        day_dir.mkdir(parents=True, exist_ok=True)

        record = {
            "project_id": project_id,
            "date": report_date.isoformat(),
            "status": "generated",
            "owner_md": result.owner_markdown,
            "gc_md": result.gc_markdown,
            "raw_json": {
                "stage_a": [a.model_dump(mode="json", by_alias=True) for a in result.analyses],
                "stage_b": result.report_data.model_dump(mode="json"),
                "weather": result.weather.model_dump(mode="json") if result.weather else None,
                "generated_at": result.generated_at.isoformat(),
                "model_used": result.debug.model_used,
            },
        }

        (day_dir / f"{project_id}.owner.md").write_text(result.owner_markdown, encoding="utf-8")
        (day_dir / f"{project_id}.gc.md").write_text(result.gc_markdown, encoding="utf-8")
        target = self.path(project_id, report_date)
        target.write_text(json.dumps(record, indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def load(self, project_id: str, report_date: date) -> dict | None:
        """Get a saved record, returning None if not found."""
        target = self.path(project_id, report_date)
        if target.exists():
            return json.loads(target.read_text(encoding="utf-8"))
        return None

    def exists(self, project_id: str, report_date: date) -> bool:
        return self.path(project_id, report_date).exists()
