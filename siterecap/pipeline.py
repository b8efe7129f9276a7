"""Daily report pipeline - 2 stages (per-photo extract, aggregate) plus rendering."""
import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Support both direct script execution and module import
try:
    from .client import APIClient
    from .config import load_settings
    from .errors import SiteRecapError
    from .manifest import load_photos
    from .models import ReportRequest
    from .orchestrator import ReportPipeline
    from .store import ReportStore
    from .weather import get_current_weather
except ImportError:
    from client import APIClient
    from config import load_settings
    from errors import SiteRecapError
    from manifest import load_photos
    from models import ReportRequest
    from orchestrator import ReportPipeline
    from store import ReportStore
    from weather import get_current_weather


async def run_pipeline(
    project_id: str,
    project_name: str,
    report_date: date,
    manifest: Path,
    lat: float | None = None,
    lon: float | None = None
) -> int:
    """Generate and save the owner and GC reports for one project-day."""
    print("=== Daily Site Report Pipeline ===\n")

    if not manifest.exists():
        print(f"Error: {manifest} not found")
        return 1

    try:
        settings = load_settings()

        # Load photos
        print(f"Loading photos from {manifest}...")
        photos = load_photos(manifest, project_id, report_date)
        print(f"Loaded {len(photos)} photos for {project_id} on {report_date}\n")

        # Weather is optional
        weather = await get_current_weather(lat, lon, timeout=settings.fetch_timeout)
        if weather:
            print(f"Weather: {weather.temperature}°F {weather.description}\n")

        request = ReportRequest(
            project_id=project_id,
            project_name=project_name,
            date=report_date.isoformat(),
            photos=photos,
            weather=weather,
        )

        pipeline = ReportPipeline(APIClient.from_settings(settings), settings=settings)

        print("Analyzing photos and aggregating report...")
        result = await pipeline.run(request)
    except (SiteRecapError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    failed = sum(1 for a in result.analyses if a.error)
    print(f"✓ Analyzed {result.debug.photos_analyzed} photos ({failed} failed)")
    if result.report_data.error:
        print("! Aggregation failed, placeholder report generated")
    print()

    store = ReportStore(settings.data_dir / "reports")
    saved = store.save(project_id, report_date, result)
    print(f"✓ Saved to {saved}\n")

    print("=" * 60)
    print(result.owner_markdown)
    print("=" * 60)
    print(f"Model: {result.debug.model_used}")
    print(f"Weather included: {result.debug.weather_included}")
    print("=" * 60)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate daily site reports from photos.")
    parser.add_argument("--project-id", required=True)
    parser.add_argument("--project-name", default="")
    parser.add_argument("--date", required=True, type=date.fromisoformat)
    parser.add_argument("--manifest", required=True, type=Path, help="CSV of uploaded photos")
    parser.add_argument("--lat", type=float)
    parser.add_argument("--lon", type=float)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return asyncio.run(run_pipeline(
        args.project_id,
        args.project_name or args.project_id,
        args.date,
        args.manifest,
        lat=args.lat,
        lon=args.lon,
    ))


if __name__ == "__main__":
    sys.exit(main())
