"""
Command Line Interface

CLI for managing patient records and AI-assisted intake.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional
import json
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from medhelp.errors import MedHelpError
from medhelp.identity import User
from medhelp.pipeline.session import ClinicSession
from medhelp.records.record_types import PatientRecord

app = typer.Typer(
    name="medhelp",
    help="Clinical note-taking with AI-assisted intake",
    add_completion=False,
)
console = Console()

_options: dict = {"config": None}


@app.callback()
def main_options(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Clinical note-taking with AI-assisted intake."""
    _options["config"] = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _session() -> ClinicSession:
    config = _options.get("config")
    if config is not None and not config.exists():
        console.print(f"[red]Error: Config file not found: {config}[/red]")
        raise typer.Exit(1)
    return ClinicSession.from_config(config)


@contextmanager
def _errors():
    """Report MedHelp errors as console messages with exit code 1."""
    try:
        yield
    except MedHelpError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)


def _print_record(record: PatientRecord) -> None:
    console.print(f"[bold]{record.name}[/bold]  [dim]{record.id}[/dim]")
    console.print(f"{record.age} years old - {record.gender.value.capitalize()}")
    for label, value in [
        ("History", record.history),
        ("Symptoms", record.symptoms),
        ("Tests", record.tests),
        ("Allergies", record.allergies),
        ("Possible condition", record.possible_condition),
        ("Recommendations", record.recommendations),
    ]:
        if value:
            console.print(f"[bold]{label}:[/bold] {value}")
    console.print(
        f"[dim]Created {record.created_at:%d/%m/%Y %H:%M} - "
        f"updated {record.updated_at:%d/%m/%Y %H:%M}[/dim]"
    )


def _print_draft(draft_dict: dict) -> None:
    if not draft_dict:
        return
    console.print("[bold]AI extracted information[/bold]")
    for key, value in draft_dict.items():
        console.print(f"  {key.replace('_', ' ').capitalize()}: {value}")
    console.print(
        "[yellow]AI suggestions are for reference only. Final medical decisions "
        "should always be made by the treating physician.[/yellow]"
    )


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", help="Clinician email"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Sign in on this device."""
    session = _session()
    user = session.identity.login(User.from_email(email, name))
    console.print(f"[green]Signed in as {user.name}[/green]")


@app.command()
def logout() -> None:
    """Sign out on this device."""
    session = _session()
    session.identity.logout()
    console.print("Signed out")


@app.command()
def whoami() -> None:
    """Show the signed-in user."""
    session = _session()
    user = session.identity.current_user()
    if user is None:
        console.print("[yellow]Not signed in[/yellow]")
        raise typer.Exit(1)
    console.print(f"{user.name} <{user.email}> [dim]{user.id}[/dim]")


@app.command("list")
def list_records(
    query: str = typer.Option("", "--query", "-q", help="Search name, symptoms, history"),
    date: str = typer.Option("", "--date", "-d", help="Created on dd/mm/yy or dd/mm/yyyy"),
) -> None:
    """List patient records, newest first."""
    session = _session()
    with _errors():
        store = session.store
        if not session.identity.is_authenticated:
            console.print("[yellow]Not signed in. Run 'medhelp login' first.[/yellow]")
            raise typer.Exit(1)
        records = store.filter(query, date)

    if not len(store):
        console.print("No patients yet.")
        return
    if not records:
        console.print(f'No patients found matching "{query or date}"')
        return

    table = Table(title="Patients")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Age")
    table.add_column("Gender")
    table.add_column("Symptoms")
    table.add_column("Possible condition")
    table.add_column("Created")
    for r in records:
        table.add_row(
            r.id[:8],
            r.name,
            str(r.age),
            r.gender.value,
            r.symptoms,
            r.possible_condition or "",
            f"{r.created_at.astimezone(store.tz):%d/%m/%Y}",
        )
    console.print(table)


def _resolve_id(session: ClinicSession, record_id: str) -> str:
    """Accept a full id or a unique prefix as shown by 'list'."""
    matches = [r.id for r in session.store.list() if r.id.startswith(record_id)]
    return matches[0] if len(matches) == 1 else record_id


@app.command()
def show(record_id: str = typer.Argument(..., help="Record id or prefix")) -> None:
    """Show one patient record."""
    session = _session()
    with _errors():
        record = session.store.get(_resolve_id(session, record_id))
    _print_record(record)


@app.command()
def add(
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    age: Optional[str] = typer.Option(None, "--age", "-a"),
    gender: Optional[str] = typer.Option(None, "--gender", "-g", help="male, female or other"),
    history: Optional[str] = typer.Option(None, "--history"),
    symptoms: Optional[str] = typer.Option(None, "--symptoms"),
    tests: Optional[str] = typer.Option(None, "--tests"),
    allergies: Optional[str] = typer.Option(None, "--allergies"),
    possible_condition: Optional[str] = typer.Option(None, "--condition"),
    recommendations: Optional[str] = typer.Option(None, "--recommendations"),
    note: Optional[str] = typer.Option(None, "--note", help="Clinical note to extract fields from"),
) -> None:
    """Create a patient record, optionally pre-filled from a clinical note."""
    session = _session()
    with _errors():
        form = session.new_form()
        if note:
            result = session.extract_into(form, note)
            if result.failed:
                console.print("[yellow]AI extraction failed; continuing with entered fields[/yellow]")
            else:
                _print_draft(result.draft.to_dict())

        entered = {
            "name": name,
            "age": age,
            "gender": gender,
            "history": history,
            "symptoms": symptoms,
            "tests": tests,
            "allergies": allergies,
            "possible_condition": possible_condition,
            "recommendations": recommendations,
        }
        for key, value in entered.items():
            if value is not None:
                form.set(key, value)

        record = form.submit()

    console.print(f"[green]Patient record created: {record.id}[/green]")


@app.command()
def update(
    record_id: str = typer.Argument(..., help="Record id or prefix"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    age: Optional[str] = typer.Option(None, "--age", "-a"),
    gender: Optional[str] = typer.Option(None, "--gender", "-g"),
    history: Optional[str] = typer.Option(None, "--history"),
    symptoms: Optional[str] = typer.Option(None, "--symptoms"),
    tests: Optional[str] = typer.Option(None, "--tests"),
    allergies: Optional[str] = typer.Option(None, "--allergies"),
    possible_condition: Optional[str] = typer.Option(None, "--condition"),
    recommendations: Optional[str] = typer.Option(None, "--recommendations"),
) -> None:
    """Update fields of a patient record."""
    changes = {
        k: v
        for k, v in {
            "name": name,
            "age": age,
            "gender": gender,
            "history": history,
            "symptoms": symptoms,
            "tests": tests,
            "allergies": allergies,
            "possible_condition": possible_condition,
            "recommendations": recommendations,
        }.items()
        if v is not None
    }
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(0)

    session = _session()
    with _errors():
        record = session.store.update(_resolve_id(session, record_id), changes)
    console.print(f"[green]Patient record updated: {record.id}[/green]")


@app.command()
def delete(
    record_id: str = typer.Argument(..., help="Record id or prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a patient record. This cannot be undone."""
    session = _session()
    with _errors():
        full_id = _resolve_id(session, record_id)
        record = session.store.get(full_id)
        if not yes and not typer.confirm(f"Delete the record for {record.name}?"):
            raise typer.Exit(0)
        session.store.delete(full_id)
    console.print("[green]Patient record deleted[/green]")


@app.command()
def extract(
    text: str = typer.Argument(..., help="Clinical note text"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file"),
) -> None:
    """Extract draft patient fields from a clinical note."""
    session = _session()
    result = session.intake.extract(text)

    json_output = json.dumps(result.to_dict(), indent=2)
    if output:
        output.write_text(json_output)
        console.print(f"[green]Output saved to: {output}[/green]")
    else:
        console.print(json_output)

    if result.failed:
        console.print("[red]Failed to extract patient data from all backends[/red]")
        raise typer.Exit(1)


@app.command()
def dictate(
    save: bool = typer.Option(False, "--save", help="Save the result as a new record"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    gender: Optional[str] = typer.Option(None, "--gender", "-g"),
) -> None:
    """Dictate a voice note, transcribe it and extract patient fields."""
    session = _session()
    with _errors():
        form = session.new_form()

        def on_extracted(capture, extraction):
            console.print(f"[green]{capture.message}[/green]")
            if extraction.failed:
                console.print("[red]Failed to extract patient data[/red]")
            else:
                _print_draft(extraction.draft.to_dict())

        recorder = session.recorder(session.dictation_listener(form, on_extracted))

        if not recorder.start():
            result = recorder.last_result
            console.print(f"[red]{result.message if result else 'Could not start recording'}[/red]")
            raise typer.Exit(1)

        console.print("[bold]Recording...[/bold] [dim]Press Enter to stop.[/dim]")
        try:
            input()
        except (KeyboardInterrupt, EOFError):
            pass

        with console.status("Processing..."):
            result = recorder.stop()

        if result is None or not result.ok:
            console.print(f"[red]{result.message if result else 'Recording failed'}[/red]")
            raise typer.Exit(1)

        if save:
            if name:
                form.set("name", name)
            if gender:
                form.set("gender", gender)
            record = form.submit()
            console.print(f"[green]Patient record created: {record.id}[/green]")


@app.command()
def devices() -> None:
    """List available audio input devices."""
    from medhelp.capture import AudioCapture

    devices = AudioCapture.list_devices()

    if not devices:
        console.print("[yellow]No audio input devices found[/yellow]")
        raise typer.Exit(0)

    console.print("[bold]Available audio input devices:[/bold]\n")
    for device in devices:
        console.print(
            f"  [{device['index']}] {device['name']}"
            f"\n      Channels: {device['channels']}, "
            f"Sample Rate: {device['sample_rate']} Hz"
        )


@app.command()
def version() -> None:
    """Show version information."""
    from medhelp import __version__

    console.print(f"medhelp version {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
