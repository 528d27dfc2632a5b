"""CLI for declaration extraction and ingestion."""
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import click
from tqdm import tqdm

from schemas.enums import PropertyType
from schemas.extraction import ExtractionResult
from schemas.workflow import StageReport
from agents.extractors.declaration import extract_declaration
from ingestion.errors import UnsupportedUpload, InvalidTransition
from ingestion.persistence import JsonFileGateway
from ingestion.workflow import IngestionWorkflow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def guess_content_type(path: Path) -> Optional[str]:
    return mimetypes.guess_type(path.name)[0]


def extract_file(pdf_path: Path) -> ExtractionResult:
    """Run the extraction pipeline on a PDF on disk."""
    return extract_declaration(
        pdf_path.read_bytes(),
        content_type=guess_content_type(pdf_path) or "application/octet-stream",
    )


def write_result(result: ExtractionResult, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))


def show_summary(result: ExtractionResult) -> None:
    prop = result.property
    click.echo(f"  Property: {prop.name or '(none)'}")
    click.echo(f"  Owner: {prop.owner or '(none)'}")
    click.echo(f"  Ownership share: {prop.ownership_share:g}")
    click.echo(f"  Buildings: {len(result.buildings)}")
    click.echo(f"  Units: {len(result.units)}")
    if result.is_empty():
        click.echo("  No pre-fill data extracted; continue manually.")


def show_report(report: StageReport) -> None:
    """Print a stage report, including per-item issues and per-building batches."""
    status = "OK" if report.ok else "FAILED"
    click.echo(f"[{status}] {report.stage.value}: {report.items_committed} committed -> {report.next_stage.value}")
    if report.error:
        click.echo(f"    {report.error}: {report.message}")
    for issue in report.issues:
        click.echo(f"    entry {issue.index}: missing {', '.join(issue.missing_fields)}")
    for group in report.groups:
        line = f"    building {group.building_id}: {group.status} ({group.units_committed}/{group.units_submitted} units)"
        if group.error:
            line += f" [{group.error}]"
        click.echo(line)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Declaration ingestion CLI - extract and commit property records from a Teilungserklärung."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for extracted JSON (default: print to stdout)"
)
def extract(pdf_path: Path, output: Optional[Path]):
    """
    Extract property, buildings and units from a single declaration PDF.

    Example:
        declaration-ingest extract docs/teilungserklaerung.pdf -o extracted.json
    """
    try:
        result = extract_file(pdf_path)
    except UnsupportedUpload as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Extraction failed: {e}", err=True)
        logger.exception("Extraction error details:")
        sys.exit(1)

    if output is None:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    write_result(result, output)
    click.echo(f"Extraction saved to: {output}")
    show_summary(result)


@cli.command()
@click.argument("pdf_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--force",
    is_flag=True,
    help="Re-extract even if <name>.extracted.json exists"
)
def extract_all(pdf_dir: Path, force: bool):
    """
    Extract every declaration PDF in a directory.

    Results are written next to each PDF as <name>.extracted.json.

    Example:
        declaration-ingest extract-all docs/
    """
    pdf_files = sorted(pdf_dir.glob("*.pdf"))
    click.echo(f"Found {len(pdf_files)} PDFs to process")

    processed = 0
    skipped = 0
    failed = 0
    empty = 0

    for pdf_path in tqdm(pdf_files, desc="Extracting declarations"):
        output = pdf_path.with_suffix(".extracted.json")
        if output.exists() and not force:
            skipped += 1
            continue

        try:
            result = extract_file(pdf_path)
        except Exception as e:
            logger.exception(f"Extraction failed for {pdf_path.name}: {e}")
            failed += 1
            continue

        write_result(result, output)
        processed += 1
        if result.is_empty():
            empty += 1

    click.echo("")
    click.echo("Extraction complete!")
    click.echo(f"  PDFs processed: {processed}")
    if skipped > 0:
        click.echo(f"  PDFs skipped (already extracted): {skipped}")
    if failed > 0:
        click.echo(f"  PDFs failed: {failed}")
    if empty > 0:
        click.echo(f"  Without pre-fill data: {empty}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--store",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("store.json"),
    help="JSON store to commit records to (default: store.json)"
)
@click.option("--unique-number", required=True, help="Unique business identifier of the property")
@click.option(
    "--type", "property_type",
    type=click.Choice([t.value for t in PropertyType]),
    default=PropertyType.WEG.value,
    help="Management type (default: WEG)"
)
@click.option("--name", default=None, help="Property name (default: extracted name)")
def ingest(source: Path, store: Path, unique_number: str, property_type: str, name: Optional[str]):
    """
    Run the full creation workflow non-interactively.

    SOURCE is a declaration PDF, or a JSON file written by `extract`. Extracted
    data pre-fills each stage; the first failing stage stops the run. Records
    committed by earlier stages stay in the store.

    Example:
        declaration-ingest ingest docs/teilungserklaerung.pdf --unique-number WEG-0042
    """
    try:
        if source.suffix.lower() == ".json":
            extraction = ExtractionResult.model_validate_json(source.read_text())
        else:
            extraction = extract_file(source)
    except UnsupportedUpload as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Could not read {source}: {e}", err=True)
        logger.exception("Ingest source error details:")
        sys.exit(1)

    show_summary(extraction)
    workflow = IngestionWorkflow(JsonFileGateway(store), extraction)

    draft = workflow.property_draft()
    draft.unique_number = unique_number
    draft.type = PropertyType(property_type)
    if name:
        draft.name = name

    try:
        for submit in (
            lambda: workflow.submit_property(draft),
            lambda: workflow.submit_buildings(workflow.building_drafts()),
            lambda: workflow.submit_units(workflow.unit_drafts()),
        ):
            report = submit()
            show_report(report)
            if not report.ok:
                sys.exit(1)
    except InvalidTransition as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Property {workflow.property_id} created in {store}")


if __name__ == "__main__":
    cli()
