"""
cli.py – Command-line demo for the career path pipeline

Run:
    career-path "Data Analyst" --user u1
    career-path "Data Analyst" --user u1 --mock --db /tmp/career.db -v

Without credentials (or with --mock) the agents run against the offline mock
tier, so the full pipeline can be exercised end to end.
See .env.example for the live configuration.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from career_path import __version__
from career_path.config import Settings, StoreConfig, get_settings
from career_path.llm import AuthError
from career_path.models import EventType, OrchestrationResult, ProgressEvent
from career_path.orchestrator import CareerOrchestrator

console = Console()


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging through rich; safe to call more than once."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="career-path",
        description="Generate a complete career path: research, plan, courses and assessments.",
    )
    parser.add_argument("career_title", help='career to research, e.g. "Data Analyst"')
    parser.add_argument("--user", default="cli-user", help="user id the plan belongs to")
    parser.add_argument("--db", help="SQLite document store path (default: CAREER_DB_PATH)")
    parser.add_argument("--mock", action="store_true", help="force the offline mock tier")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    if args.mock:
        settings = replace(settings, app=replace(settings.app, force_mock_mode=True))
    if args.db:
        settings = replace(settings, store=StoreConfig(db_path=args.db))
    return settings


# ─── Display helpers ─────────────────────────────────────────────────────────

def show_result(result: OrchestrationResult) -> None:
    path = result.career_path

    summary = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
    summary.add_column("Key",   style="bold cyan", no_wrap=True)
    summary.add_column("Value", style="white")
    summary.add_row("Career path", f"{path.title} [dim]({path.id})[/dim]")
    summary.add_row("Demand", f"{path.market.demand} · {path.market.demand_trend}")
    salary = path.market.salary_range
    summary.add_row("Salary", f"${salary.min:,} – ${salary.max:,} (median ${salary.median:,})")
    summary.add_row("Automation risk", path.ai_impact.automation_risk)
    summary.add_row("Skills", str(path.total_skill_count))
    summary.add_row(
        "Categories",
        ", ".join(f"{c.name} {c.weight}%" for c in path.skill_categories),
    )
    console.print(Panel(summary, title="[bold]Career Path[/bold]", border_style="magenta"))

    phases = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_violet", padding=(0, 1))
    phases.add_column("#", justify="right")
    phases.add_column("Phase", style="white")
    phases.add_column("Duration")
    phases.add_column("Status", justify="center")
    phases.add_column("Courses", justify="right")
    for phase in result.learning_plan.phases:
        phases.add_row(
            str(phase.order), phase.title, phase.estimated_duration,
            phase.status.value, str(len(phase.course_ids)),
        )
    console.print(Panel(phases, title="[bold]Learning Plan[/bold]", border_style="blue"))

    courses = Table(box=box.SIMPLE_HEAD, header_style="bold cyan", padding=(0, 1))
    courses.add_column("Order", justify="right")
    courses.add_column("Course")
    courses.add_column("Difficulty")
    courses.add_column("Lessons", justify="right")
    for course in result.courses:
        courses.add_row(str(course.order), course.title, course.difficulty.value, str(course.lesson_count))
    console.print(Panel(courses, title="[bold]Courses[/bold]", border_style="cyan"))

    banks = Table(box=box.SIMPLE_HEAD, header_style="bold green", padding=(0, 1))
    banks.add_column("Skill")
    banks.add_column("Questions", justify="right")
    banks.add_column("Easy / Medium / Hard", justify="center")
    for bank in result.assessment_banks:
        mix = bank.difficulty_counts()
        banks.add_row(bank.skill_name, str(bank.question_count),
                      f"{mix['easy']} / {mix['medium']} / {mix['hard']}")
    console.print(Panel(banks, title="[bold]Assessment Banks[/bold]", border_style="green"))

    skipped = result.skipped_courses + result.skipped_assessments
    if skipped:
        console.print(f"[yellow]⚠ Skipped:[/yellow] {', '.join(skipped)}")
    if result.trace is not None:
        console.print(f"[dim]{result.trace.to_summary()}[/dim]")


# ─── Main ────────────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging("DEBUG" if args.verbose else settings.app.log_level)

    console.print(Panel(
        f"[bold]Career Path Generator[/bold] [dim]v{__version__}[/dim]\n"
        + "  •  ".join(f"{k}: {v}" for k, v in settings.status_summary().items()),
        style="on dark_violet",
        expand=False,
    ))

    try:
        orchestrator = CareerOrchestrator(settings=settings)
        with Progress(
            TextColumn("[bold blue]{task.fields[phase]}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=console,
        ) as bar:
            task = bar.add_task("Starting...", total=100, phase="initializing")

            def on_progress(event: ProgressEvent) -> None:
                if event.type == EventType.COURSE_GENERATED:
                    bar.console.print(f"  [green]✓[/green] {event.message}")
                    return
                if event.type == EventType.ERROR:
                    return
                phase = event.phase.value if event.phase else "complete"
                bar.update(task, completed=event.progress, description=event.message, phase=phase)

            result = orchestrator.generate_career_path(args.career_title, args.user, on_progress)

        show_result(result)

    except AuthError as e:
        console.print(f"\n[bold red]Configuration error:[/bold red] {e}")
        console.print("[dim]Create a .env file based on .env.example, or pass --mock.[/dim]")
        sys.exit(1)

    except ValueError as e:
        console.print(f"\n[bold red]Invalid input:[/bold red] {e}")
        sys.exit(2)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)

    except Exception:
        console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
