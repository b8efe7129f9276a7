"""Photo manifest loading and parsing."""
from datetime import date, datetime
from pathlib import Path

import pandas as pd

try:
    from .models import PhotoRef
except ImportError:
    from models import PhotoRef

REQUIRED_COLUMNS = {"project_id", "shot_date", "url"}


def _parse_date(value) -> date | None:
    if pd.isna(value):
        return None
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")).date()
    except ValueError:
        return None


def load_photos(csv_path: Path, project_id: str, shot_date: date) -> list[PhotoRef]:
    """Load one project-day's photos from a CSV manifest.

    Columns: project_id, shot_date, url and optionally created_at. Photos are
    returned in upload order (created_at, then file order) with ``order``
    set to the 1-based position.
    """
    df = pd.read_csv(csv_path, dtype={"project_id": str, "url": str})

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"{csv_path} is missing columns: {', '.join(sorted(missing))}")

    df["_shot_date"] = df["shot_date"].map(_parse_date)
    df = df[(df["project_id"].str.strip() == str(project_id)) & (df["_shot_date"] == shot_date)]
    df = df[df["url"].notna() & (df["url"].str.strip() != "")]

    if "created_at" in df.columns:
        df = df.assign(
            _created=pd.to_datetime(df["created_at"], errors="coerce", utc=True)
        ).sort_values("_created", kind="stable", na_position="last")

    return [
        PhotoRef(order=position, url=row.url.strip())
        for position, row in enumerate(df.itertuples(index=False), 1)
    ]
