import json
import logging
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.table import Table

from wardcare.config import load_settings
from wardcare.core.categorization import get_dosing_weight, get_patient_context
from wardcare.core.investigations.store import JsonFileRecordStore
from wardcare.core.investigations.workflow import InvestigationWorkflow
from wardcare.core.models import InvestigationPriority, InvestigationRequest, InvestigationStatus, ResultEntry
from wardcare.core.scoring.infection import calculate_lrinec, calculate_news2, calculate_qsofa
from wardcare.core.scoring.wounds import WoundShape, calculate_wound_area
from wardcare.exceptions import WardcareError
from wardcare.utils.audit import AuditLogger
from wardcare.utils.logging_config import configure_logging

app = typer.Typer(help="Ward clinical decision support CLI")
lab_app = typer.Typer(help="Investigation and lab request workflow")
app.add_typer(lab_app, name="lab")

console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    settings = load_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_file)


def _fail(message: str) -> None:
    rprint(f"[bold red]:x: {escape(message)}[/bold red]")
    raise typer.Exit(code=1)


def _score_table(title: str, subscores: dict) -> Table:
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Parameter", style="cyan")
    table.add_column("Points", style="magenta", justify="right")
    for name, points in subscores.items():
        table.add_row(name, str(points))
    return table


@app.command()
def categorize(
    dob: str = typer.Argument(..., help="Date of birth (YYYY-MM-DD)."),
    sex: str = typer.Option("male", "--sex", help="'male' or 'female'."),
    weight: Optional[float] = typer.Option(None, "--weight", help="Weight in kg."),
    height: Optional[float] = typer.Option(None, "--height", help="Height in cm."),
    pregnant: bool = typer.Option(False, "--pregnant", help="Patient is pregnant."),
    lmp: Optional[str] = typer.Option(None, "--lmp", help="Last menstrual period (YYYY-MM-DD)."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date, today by default."),
):
    """Show a patient's age category, assessments and dosing weight."""
    try:
        context = get_patient_context(dob, sex, weight, height, pregnant, lmp, now=as_of)
    except (WardcareError, ValueError) as e:
        _fail(str(e))

    category = context.category
    table = Table(title=f"Patient Category ({category.display_age})", show_header=True, header_style="bold blue")
    table.add_column("Field", style="cyan", width=24)
    table.add_column("Value", style="magenta")
    table.add_row("Age category", category.age_category.value)
    table.add_row("Broad category", category.broad_category.value)
    table.add_row("Required assessments", ", ".join(category.required_assessments))
    table.add_row("Excluded assessments", ", ".join(category.excluded_assessments) or "-")
    table.add_row("Contraindications", "; ".join(category.contraindications) or "-")
    if context.bsa is not None:
        table.add_row("BSA (m2)", f"{context.bsa:.2f}")
    if context.ibw is not None:
        table.add_row("IBW (kg)", f"{context.ibw:.1f}")
    if context.weight:
        dosing = get_dosing_weight(context)
        table.add_row("Dosing weight", f"{dosing.weight:.1f} kg ({dosing.weight_type})")
    if context.pregnancy and context.pregnancy.is_pregnant:
        p = context.pregnancy
        table.add_row("Gestation", f"{p.gestational_weeks}w {p.gestational_days}d (trimester {p.trimester})")
        table.add_row("EDD", str(p.edd))
        table.add_row("Medication categories", ", ".join(c.value for c in p.medication_categories))
    console.print(table)


@app.command()
def lrinec(
    crp: float = typer.Option(..., help="CRP (mg/L)."),
    wbc: float = typer.Option(..., help="WBC (x10^9/L)."),
    hemoglobin: float = typer.Option(..., help="Hemoglobin (g/dL)."),
    sodium: float = typer.Option(..., help="Sodium (mmol/L)."),
    creatinine: float = typer.Option(..., help="Creatinine (umol/L)."),
    glucose: float = typer.Option(..., help="Glucose (mmol/L)."),
):
    """Laboratory Risk Indicator for Necrotizing Fasciitis."""
    result = calculate_lrinec(crp, wbc, hemoglobin, sodium, creatinine, glucose)
    subscores = result.model_dump(include={"crp", "wbc", "hemoglobin", "sodium", "creatinine", "glucose"})
    console.print(_score_table(f"LRINEC {result.total_score} ({result.risk_category.value})", subscores))
    rprint(result.interpretation)


@app.command()
def qsofa(
    systolic_bp: float = typer.Option(..., "--systolic-bp", help="Systolic BP (mmHg)."),
    respiratory_rate: float = typer.Option(..., "--respiratory-rate", help="Breaths per minute."),
    altered_mentation: bool = typer.Option(False, "--altered-mentation", help="GCS below 15."),
):
    """quick Sequential Organ Failure Assessment."""
    result = calculate_qsofa(altered_mentation, systolic_bp, respiratory_rate)
    console.print(_score_table(f"qSOFA {result.score}/3", result.subscores))
    style = "bold red" if result.sepsis_likely else "green"
    rprint(f"[{style}]{result.interpretation}[/{style}]")


@app.command()
def news2(
    respiratory_rate: float = typer.Option(..., "--respiratory-rate"),
    spo2: float = typer.Option(..., "--spo2"),
    temperature: float = typer.Option(..., "--temperature"),
    systolic_bp: float = typer.Option(..., "--systolic-bp"),
    heart_rate: float = typer.Option(..., "--heart-rate"),
    consciousness: str = typer.Option("alert", "--consciousness", help="ACVPU descriptor."),
    on_oxygen: bool = typer.Option(False, "--on-oxygen", help="Receiving supplemental oxygen."),
):
    """National Early Warning Score 2."""
    result = calculate_news2(respiratory_rate, spo2, on_oxygen, temperature, systolic_bp, heart_rate, consciousness)
    console.print(_score_table(f"NEWS2 {result.score} ({result.risk})", result.subscores))
    rprint(result.action)


@app.command("wound-area")
def wound_area(
    length: float = typer.Argument(..., help="Length in cm (diameter for circles)."),
    width: float = typer.Argument(0.0, help="Width in cm."),
    shape: WoundShape = typer.Option(WoundShape.ELLIPSE, "--shape", case_sensitive=False),
):
    """Estimate a wound's area from its dimensions."""
    area = calculate_wound_area(length, width, shape)
    rprint(f"Wound area ({shape.value}): [bold]{area:.2f} cm²[/bold]")


def _workflow() -> InvestigationWorkflow:
    settings = load_settings()
    return InvestigationWorkflow(
        store=JsonFileRecordStore(settings.store_path),
        audit_logger=AuditLogger(str(settings.audit_dir)),
        require_results_on_complete=settings.require_results_on_complete,
    )


def _close(workflow: InvestigationWorkflow) -> None:
    workflow.audit.close()


@lab_app.command("request")
def lab_request(
    patient_id: str = typer.Option(..., "--patient", help="Patient ID."),
    tests: List[str] = typer.Option(..., "--test", "-t", help="Test id or name; repeat for several."),
    requested_by: str = typer.Option(..., "--by", help="Requesting user ID."),
    hospital_id: str = typer.Option("main", "--hospital", help="Hospital ID."),
    priority: InvestigationPriority = typer.Option(InvestigationPriority.ROUTINE, "--priority", case_sensitive=False),
    clinical_details: Optional[str] = typer.Option(None, "--details", help="Clinical details."),
):
    """Create an investigation request."""
    workflow = _workflow()
    try:
        request = InvestigationRequest(
            patient_id=patient_id,
            hospital_id=hospital_id,
            tests=tests,
            priority=priority,
            clinical_details=clinical_details,
            requested_by=requested_by,
        )
        investigation = workflow.create_request(request)
    except (ValidationError, WardcareError) as e:
        _fail(str(e))
    finally:
        _close(workflow)
    rprint(f"[green]:heavy_check_mark: Created {investigation.id}[/green] ({investigation.type_name or 'uncatalogued tests'})")


@lab_app.command("advance")
def lab_advance(
    investigation_id: str = typer.Argument(..., help="Investigation ID."),
    status: InvestigationStatus = typer.Argument(..., help="Target status."),
    user_id: str = typer.Option(..., "--by", help="Acting user ID."),
):
    """Move an investigation to its next status."""
    workflow = _workflow()
    try:
        investigation = workflow.update_status(investigation_id, status, user_id)
    except WardcareError as e:
        _fail(str(e))
    finally:
        _close(workflow)
    rprint(f"[green]:heavy_check_mark: {investigation.id} is now {investigation.status.value}[/green]")


def _parse_result(text: str) -> ResultEntry:
    parameter, sep, value = text.partition("=")
    if not sep or not parameter.strip() or not value.strip():
        raise typer.BadParameter(f"Expected PARAMETER=VALUE, got '{text}'")
    return ResultEntry(parameter=parameter.strip(), value=value.strip())


@lab_app.command("results")
def lab_results(
    investigation_id: str = typer.Argument(..., help="Investigation ID."),
    results: List[str] = typer.Option(..., "--result", "-r", help="PARAMETER=VALUE; repeat for several."),
    user_id: str = typer.Option(..., "--by", help="Acting user ID."),
    interpretation: Optional[str] = typer.Option(None, "--interpretation"),
):
    """Add results and complete the investigation."""
    entries = [_parse_result(r) for r in results]
    workflow = _workflow()
    try:
        investigation = workflow.add_results(investigation_id, entries, user_id, interpretation=interpretation)
    except WardcareError as e:
        _fail(str(e))
    finally:
        _close(workflow)

    table = Table(title=f"Results for {investigation.id}", show_header=True, header_style="bold blue")
    for column in ("Parameter", "Value", "Unit", "Range", "Flag"):
        table.add_column(column)
    for r in investigation.results:
        flag = r.flag.value if r.flag else "-"
        style = "bold red" if flag in ("LL", "HH") else "yellow" if flag in ("L", "H") else ""
        table.add_row(r.parameter, f"{r.value}", r.unit or "", r.reference_range or "", f"[{style}]{flag}[/{style}]" if style else flag)
    console.print(table)


@lab_app.command("pending")
def lab_pending():
    """Show the lab worklist."""
    workflow = _workflow()
    try:
        pending = workflow.get_pending_investigations()
    finally:
        _close(workflow)

    if not pending:
        rprint("[yellow]No pending investigations.[/yellow]")
        return
    table = Table(title="Pending Investigations", show_header=True, header_style="bold blue")
    table.add_column("ID", no_wrap=True, min_width=16)
    for column in ("Patient", "Tests", "Priority", "Status", "Requested"):
        table.add_column(column)
    for inv in pending:
        table.add_row(
            inv.id,
            inv.patient_id,
            inv.type_name,
            inv.priority.value,
            inv.status.value,
            inv.requested_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@lab_app.command("trend")
def lab_trend(
    patient_id: str = typer.Argument(..., help="Patient ID."),
    parameter: str = typer.Argument(..., help="Result parameter, e.g. Creatinine."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw analysis as JSON."),
):
    """Trend a parameter across a patient's completed investigations."""
    workflow = _workflow()
    try:
        analysis = workflow.calculate_trend(patient_id, parameter)
    finally:
        _close(workflow)

    if as_json:
        console.print(JSON(json.dumps(analysis.model_dump(mode="json"), indent=2)))
        return

    rprint(f"[bold]{parameter}[/bold]: {analysis.trend.value} ({analysis.percent_change:+.1f}%)")
    for point in analysis.data_points:
        flag = point.flag.value if point.flag else "-"
        rprint(f"  {point.date:%Y-%m-%d %H:%M}  {point.value:g}  {flag}")
    for recommendation in analysis.recommendations:
        rprint(f"- {recommendation}")


if __name__ == "__main__":
    app()
