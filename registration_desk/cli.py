"""Command Line Interface for Registration-Desk.

This module provides a Typer CLI over the visit registration engine: browse
the dependent option sets, load a patient's registration record, register a
visit from a JSON file and inspect the stored attribute tree.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from registration_desk import __version__
from registration_desk.domain.catalog import REFERRAL_TYPE_LABELS, REGIONS, department_label
from registration_desk.domain.enums import AdmissionClassification
from registration_desk.domain.ports import (
    PartialSaveError,
    RegistrationValidationError,
    StorageError,
)
from registration_desk.domain.services import get_dependent_options, get_district_options
from registration_desk.domain.visit_registration import (
    MAX_GROUP_SLOTS,
    GuaranteeGroup,
    InsurerGroup,
    VisitRegistration,
)
from registration_desk.infrastructure.settings import settings

# Initialize Typer app and Rich console
app = typer.Typer(
    name="registration-desk",
    help="Registration-Desk: visit registration form engine",
    add_completion=False
)
console = Console()


def create_storage_adapter_cli():
    """Create the record store based on configuration (CLI wrapper)."""
    try:
        from registration_desk.main import create_storage_adapter
        return create_storage_adapter()
    except (StorageError, ValueError) as e:
        console.print(f"[red]✗[/red] Failed to create storage adapter: {str(e)}")
        raise typer.Exit(code=1)


# Fields owned by the record store, never taken from a registration file
STORE_OWNED_FIELDS = ("visit_id", "registration_number")


def _group_from_entries(group_type, entries: list[dict[str, Any]]):
    """Build a slot group whose active slots are ``entries``."""
    active = [group_type.entry_type.model_validate(entry) for entry in entries[:MAX_GROUP_SLOTS]]
    slots = active + [group_type.entry_type()] * (MAX_GROUP_SLOTS - len(active))
    return group_type(slots=tuple(slots), count=max(1, len(active)))


def _merge_payload(base: VisitRegistration, payload: dict[str, Any]) -> VisitRegistration:
    """Overlay the JSON payload onto the loaded record.

    ``insurers`` and ``guarantees`` may be given as plain lists of entries;
    a non-empty insurer list enables insurance unless the payload says
    otherwise.
    """
    data = base.model_dump()
    for key, value in payload.items():
        if key in STORE_OWNED_FIELDS:
            continue
        if key == "insurers" and isinstance(value, list):
            value = _group_from_entries(InsurerGroup, value)
        elif key == "guarantees" and isinstance(value, list):
            value = _group_from_entries(GuaranteeGroup, value)
        data[key] = value
    if isinstance(payload.get("insurers"), list) and "insurance_enabled" not in payload:
        data["insurance_enabled"] = bool(payload["insurers"])
    return VisitRegistration.model_validate(data)


@app.command()
def options(
    classification: AdmissionClassification = typer.Argument(
        ..., help="Admission classification code (3=ambulatory, 1=planned, 2=emergency)"
    ),
) -> None:
    """Show the departments and referral types offered for a classification."""
    dependents = get_dependent_options(classification)

    department_table = Table(title="Departments")
    department_table.add_column("Id", style="cyan")
    department_table.add_column("Department")
    for option in dependents["departments"]:
        department_table.add_row(option.value, option.label)
    console.print(department_table)

    referral_table = Table(title="Referral types")
    referral_table.add_column("Code", style="cyan")
    referral_table.add_column("Referral type")
    for position, referral_type in enumerate(dependents["referral_types"]):
        label = REFERRAL_TYPE_LABELS[referral_type]
        referral_table.add_row(referral_type.value, f"{label} (default)" if position == 0 else label)
    console.print(referral_table)


@app.command()
def districts(region: str = typer.Argument(..., help="Region code")) -> None:
    """List the districts owned by a region."""
    if region not in REGIONS:
        console.print(f"[yellow]Unknown region:[/yellow] {region}")
    table = Table(title=f"Districts of {REGIONS[region].name}" if region in REGIONS else "Districts")
    table.add_column("Code", style="cyan")
    table.add_column("District")
    for option in get_district_options(region):
        table.add_row(option.value, option.label)
    console.print(table)


@app.command()
def load(patient_id: str = typer.Argument(..., help="Patient identifier")) -> None:
    """Show the registration record the form would start from."""
    from registration_desk.main import create_controller

    store = create_storage_adapter_cli()
    controller = create_controller(store)

    async def run():
        return await controller.load(patient_id), await controller.visit_summary(patient_id)

    try:
        record, summary = asyncio.run(run())
    except StorageError as e:
        console.print(f"[red]✗[/red] Failed to load patient {patient_id}: {str(e)}")
        raise typer.Exit(code=1)
    finally:
        store.close()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_row("Patient:", record.patient_id)
    table.add_row("Prior visit:", record.visit_id or "none")
    table.add_row("Registration number:", record.registration_number or "-")
    table.add_row("Admission type:", record.admission_classification.name.replace("_", " ").title())
    table.add_row("Department:", department_label(record.department) or "-")
    table.add_row("Referral type:", REFERRAL_TYPE_LABELS[record.referral_type])
    table.add_row("Insurers:", str(len([e for e in record.insurer_entries if e.company])))
    table.add_row("Guarantee letters:", str(len([e for e in record.guarantee_entries if not e.is_empty()])))
    table.add_row("Visits:", f"{summary.total} (ambulatory {summary.ambulatory_count}, stationary {summary.stationary_count})")
    console.print(table)


@app.command()
def register(
    input_file: Path = typer.Argument(..., help="JSON file with the registration fields", exists=True),
) -> None:
    """Register (create or update) a visit from a JSON file.

    The file holds VisitRegistration fields and must name ``patient_id``.
    The patient's most recent visit is updated when one exists.

    Examples:
        registration-desk register visit.json
    """
    try:
        payload = json.loads(input_file.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]✗[/red] Invalid JSON in {input_file}: {str(e)}")
        raise typer.Exit(code=1)
    if not isinstance(payload, dict) or not payload.get("patient_id"):
        console.print("[red]✗[/red] The registration file must be an object with a patient_id")
        raise typer.Exit(code=1)

    from registration_desk.main import create_controller

    store = create_storage_adapter_cli()
    controller = create_controller(store)

    async def run():
        base = await controller.load(payload["patient_id"])
        return await controller.save(_merge_payload(base, payload))

    try:
        outcome = asyncio.run(run())
    except ValidationError as e:
        console.print(f"[red]✗[/red] Malformed registration: {str(e)}")
        raise typer.Exit(code=1)
    except RegistrationValidationError as e:
        table = Table(title="Validation errors")
        table.add_column("Field", style="cyan")
        table.add_column("Problem", style="red")
        for field, message in e.messages.items():
            table.add_row(field, message)
        console.print(table)
        raise typer.Exit(code=1)
    except PartialSaveError as e:
        console.print(f"[yellow]![/yellow] Visit {e.visit_id} saved, but demographics were not updated: {str(e)}")
        raise typer.Exit(code=1)
    except StorageError as e:
        console.print(f"[red]✗[/red] Save failed: {str(e)}")
        raise typer.Exit(code=1)
    finally:
        store.close()

    action = "Created" if outcome.created else "Updated"
    console.print(f"[green]✓[/green] {action} visit {outcome.visit_id} ({outcome.registration_number})")


@app.command()
def tree(patient_id: str = typer.Argument(..., help="Patient identifier")) -> None:
    """Print the stored attribute tree of the patient's most recent visit."""
    store = create_storage_adapter_cli()
    try:
        visit = asyncio.run(store.search_most_recent(patient_id))
    except StorageError as e:
        console.print(f"[red]✗[/red] Failed to read visits: {str(e)}")
        raise typer.Exit(code=1)
    finally:
        store.close()

    if visit is None:
        console.print(f"[yellow]No visits for patient {patient_id}[/yellow]")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(visit.tree.to_raw()))


@app.command()
def info() -> None:
    """Display system information and configuration."""
    console.print("[bold blue]System Information[/bold blue]\n")

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Database Type:", settings.db_config.db_type)
    if settings.db_config.db_type == "duckdb":
        info_table.add_row("Database Path:", settings.get_db_path())
    info_table.add_row("Log Level:", settings.log_level)
    console.print(info_table)


@app.callback(invoke_without_command=True)
def main_callback(
    version: bool = typer.Option(False, "--version", help="Show version information")
) -> None:
    """Registration-Desk: visit registration form engine."""
    from registration_desk.main import bootstrap_logging

    bootstrap_logging()
    if version:
        console.print(f"Registration-Desk v{__version__}")
        raise typer.Exit()


if __name__ == "__main__":
    app()
