from pathlib import Path
from typing import List, Optional

import typer

from .classifier.model import Category
from .classifier.rules import categorize as categorize_text
from .config import Settings
from .errors import SnapsiftError
from .logging import get_logger
from .pipeline import ScreenshotLibrary, summarize
from .sources.images import DirectoryImageSource
from .sources.ocr import NullOCREngine, TesseractOCREngine
from .store.json_store import JsonStore

app = typer.Typer(help="snapsift – screenshot categorization and duplicate finder", no_args_is_help=True)

logger = get_logger(__name__)

STORE_OPTION = typer.Option(Path("snapsift.json"), "--store", "-s", help="JSON store file")


def safe_echo(message: str) -> None:
    """Echo message with ASCII fallback for consoles without Unicode support."""
    try:
        typer.echo(message)
    except UnicodeEncodeError:
        typer.echo(message.encode("ascii", "replace").decode("ascii"))


def _settings(store: Path, **overrides) -> Settings:
    try:
        return Settings(store_path=store, **overrides).validate()
    except ValueError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=2) from exc


def _open_library(settings: Settings, ocr_engine=None) -> ScreenshotLibrary:
    try:
        return ScreenshotLibrary(JsonStore(settings.store_path), settings, ocr_engine)
    except SnapsiftError as exc:
        logger.error(f"Failed to open store: {exc}")
        raise typer.Exit(code=1) from exc


def _parse_category(value: str) -> Category:
    category = Category.from_stored(value)
    if category is Category.UNKNOWN and value.strip().lower() != "unknown":
        choices = ", ".join(member.name.lower() for member in Category)
        logger.error(f"Unknown category '{value}'. Choose one of: {choices}")
        raise typer.Exit(code=2)
    return category


@app.command("import")
def import_screenshots(
    directory: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory containing screenshots"),
    store: Path = STORE_OPTION,
    threshold: int = typer.Option(5, help="Maximum hamming distance for duplicates (0-64)"),
    workers: int = typer.Option(4, help="Number of analysis threads"),
    ocr: bool = typer.Option(True, "--ocr/--no-ocr", help="Run Tesseract OCR on each screenshot"),
    lang: str = typer.Option("deu+eng", help="Tesseract language codes"),
) -> None:
    """
    Import new screenshots from a directory.

    Each new screenshot is run through OCR, categorized and fingerprinted; the
    whole collection is then re-clustered into duplicate groups.
    """
    settings = _settings(store, duplicate_threshold=threshold, workers=workers, ocr_languages=lang)
    engine = NullOCREngine()
    if ocr:
        engine = TesseractOCREngine(languages=settings.ocr_languages)
        if not engine.is_available():
            logger.error("Tesseract is not available; install it and the 'ocr' extra, or pass --no-ocr")
            raise typer.Exit(code=1)
    library = _open_library(settings, engine)

    def progress(done: int, total: int) -> None:
        logger.debug(f"Analyzed {done}/{total}")

    try:
        report = library.import_from(
            DirectoryImageSource(directory, settings.image_extensions), progress=progress
        )
    except SnapsiftError as exc:
        logger.error(f"Import failed: {exc}")
        raise typer.Exit(code=1) from exc

    safe_echo("\n✅ Import complete!")
    safe_echo(f"📥 Imported: {len(report.imported)}")
    safe_echo(f"⏭️  Already known: {report.skipped_existing}")
    if report.undecodable:
        safe_echo(f"⚠️  Undecodable: {len(report.undecodable)}")
    safe_echo(f"🔄 Duplicate groups: {report.duplicate_groups}")
    safe_echo(f"📁 Store: {settings.store_path}")

    if report.failed:
        for record_id, error in report.failed.items():
            logger.error(f"Not saved: {record_id}: {error}")
        raise typer.Exit(code=1)


@app.command("list")
def list_screenshots(
    store: Path = STORE_OPTION,
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only this category"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Search text and category"),
    duplicates_only: bool = typer.Option(False, "--duplicates-only", help="Only screenshots in a duplicate group"),
    archived: bool = typer.Option(False, "--archived/--no-archived", help="Include archived screenshots"),
) -> None:
    """List stored screenshots, newest first."""
    library = _open_library(_settings(store))
    selected = _parse_category(category) if category else None
    records = library.store.fetch_all(category=selected, query=search, include_archived=archived)
    if duplicates_only:
        records = [record for record in records if record.is_duplicate]

    for record in records:
        group = record.duplicate_group_id[:8] if record.duplicate_group_id else "-"
        safe_echo(
            f"{record.id}  {record.creation_date:%Y-%m-%d %H:%M}  "
            f"{record.category.value:<13} {record.confidence:.2f}  dup:{group}  {record.source_ref}"
        )
    safe_echo(f"{len(records)} screenshots")


@app.command()
def duplicates(store: Path = STORE_OPTION) -> None:
    """Show duplicate groups."""
    library = _open_library(_settings(store))
    groups = library.duplicate_groups()
    for group in groups:
        safe_echo(f"Group {group.group_id} ({group.size} screenshots)")
        for record_id in group.record_ids:
            safe_echo(f"   {library.store.get(record_id).source_ref}")
    safe_echo(f"🔄 {len(groups)} duplicate groups")


@app.command()
def recluster(
    store: Path = STORE_OPTION,
    threshold: int = typer.Option(5, help="Maximum hamming distance for duplicates (0-64)"),
) -> None:
    """Re-run duplicate detection over the whole collection."""
    library = _open_library(_settings(store, duplicate_threshold=threshold))
    report = library.recluster()
    safe_echo(f"🔄 {report.duplicate_groups} duplicate groups, {report.regrouped} screenshots updated")
    if report.failed:
        raise typer.Exit(code=1)


@app.command()
def recategorize(
    record_id: str = typer.Argument(..., help="Screenshot id"),
    category: str = typer.Argument(..., help="New category, e.g. 'code' or 'Social Media'"),
    store: Path = STORE_OPTION,
) -> None:
    """Override the category of a screenshot."""
    library = _open_library(_settings(store))
    try:
        record = library.update_category(record_id, _parse_category(category))
    except SnapsiftError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc
    safe_echo(f"{record.id} → {record.category.value}")


@app.command()
def delete(
    record_ids: List[str] = typer.Argument(..., help="Screenshot ids to delete"),
    store: Path = STORE_OPTION,
) -> None:
    """Delete screenshots from the store."""
    library = _open_library(_settings(store))
    try:
        removed = library.delete(record_ids)
    except SnapsiftError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc
    missing = set(record_ids) - set(removed)
    for record_id in sorted(missing):
        logger.warning(f"No screenshot with id {record_id}")
    safe_echo(f"🗑️  Deleted {len(removed)} screenshots")


@app.command()
def categorize(text: str = typer.Argument(..., help="Text to categorize")) -> None:
    """Categorize a piece of text the same way OCR output is categorized."""
    match = categorize_text(text)
    safe_echo(f"{match.category.value} ({match.confidence:.2f})")


@app.command()
def summary(store: Path = STORE_OPTION) -> None:
    """Show category and duplicate statistics."""
    library = _open_library(_settings(store))
    stats = summarize(library.store.fetch_all())
    safe_echo(f"📊 Screenshots: {stats['total']}")
    for name, count in stats["categories"].items():
        if count:
            safe_echo(f"   {name}: {count}")
    if stats["total"]:
        safe_echo(f"🔄 Duplicates: {stats['duplicates']} in {stats['duplicate_groups']} groups")
        safe_echo(f"🎯 Average confidence: {stats['average_confidence']:.2f}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
