"""CLI interface using typer + rich."""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from career_orchestrator.cache.result_cache import SqliteResultCache, build_cache
from career_orchestrator.clients.llm_client import AnthropicProvider
from career_orchestrator.clients.scripted_provider import ScriptedProvider
from career_orchestrator.config import load_config
from career_orchestrator.errors import CareerOrchestratorError, InputValidationError
from career_orchestrator.models.run import RunState
from career_orchestrator.persistence.run_store import SqliteRunStore
from career_orchestrator.pipeline.orchestrator import PipelineOrchestrator
from career_orchestrator.quota.quota_store import MemoryQuotaStore

app = typer.Typer(
    name="career-orchestrator",
    help="Multi-agent résumé review, job matching and application packs",
    no_args_is_help=True,
)
console = Console()

STATUS_COLORS = {"ok": "green", "partial": "yellow", "blocked": "red", "failed": "red"}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def run(
    resume: Path = typer.Argument(help="Résumé text file"),
    job: list[Path] = typer.Option(None, "--job", "-j", help="Job posting text file (repeatable)"),
    run_type: str = typer.Option("job_match", "--run-type", "-r", help="resume_review | job_match | apply_pack"),
    user_id: str = typer.Option("local", "--user", help="User id for quota and history"),
    max_tailored: int = typer.Option(None, "--max-tailored", help="Max jobs to tailor (1-10)"),
    budget: int = typer.Option(None, "--budget", help="Token budget for the run"),
    mock: bool = typer.Option(False, "--mock", help="Use scripted offline responses"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the run JSON to this file"),
    config_path: Path = typer.Option(None, "--config", help="config.yaml path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run one orchestration over a résumé and job postings."""
    _setup_logging(verbose)
    if not resume.exists():
        console.print(f"[red]Résumé file not found: {resume}[/red]")
        raise typer.Exit(1)
    jobs = job or []
    for path in jobs:
        if not path.exists():
            console.print(f"[red]Job file not found: {path}[/red]")
            raise typer.Exit(1)

    config = load_config(config_path)
    if mock:
        provider = ScriptedProvider()
    else:
        provider = AnthropicProvider(
            timeout=config.llm.timeout,
            fast_model=config.llm.fast_model,
            quality_model=config.llm.quality_model,
            max_attempts=config.llm.max_attempts,
        )
    orchestrator = PipelineOrchestrator(
        provider,
        cache=build_cache(config.cache.backend, config.cache.ttl_seconds, config.cache.resolved_db_path),
        quota=MemoryQuotaStore(config.quota),
        run_store=SqliteRunStore(config.storage.resolved_db_path),
        config=config.pipeline,
    )

    limits: dict = {}
    if max_tailored is not None:
        limits["max_tailored_jobs"] = max_tailored
    if budget is not None:
        limits["token_budget_total"] = budget
    request = {
        "run_type": run_type,
        "user_id": user_id,
        "resume_text": resume.read_text(encoding="utf-8"),
        "jobs": [{"job_id": p.stem, "raw_text": p.read_text(encoding="utf-8")} for p in jobs],
        "limits": limits,
    }

    try:
        with console.status("Running agents..."):
            state = orchestrator.run_sync(request)
    except InputValidationError as e:
        console.print(f"[red]{e}[/red]")
        for name, message in e.fields.items():
            console.print(f"  - {name}: {message}")
        raise typer.Exit(2)
    except CareerOrchestratorError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(1)

    _print_state(state)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(state.to_json(), encoding="utf-8")
        console.print(f"\n[green]Saved: {output}[/green]")


def _print_state(state: RunState) -> None:
    color = STATUS_COLORS.get(state.status, "white")
    budget = state.budget
    console.print(
        Panel(
            f"run_id: {state.run_id}\n"
            f"status: [bold {color}]{state.status}[/bold {color}]\n"
            f"tokens: {budget.token_used_estimate}/{budget.token_budget_total}"
            + (f"\nstopped: {budget.stopped_reason}" if budget.stopped_reason else ""),
            title=state.run_type,
        )
    )
    if state.resume_json is not None:
        r = state.resume_json
        console.print(f"[bold]{r.name or 'Candidate'}[/bold] - {len(r.experience)} role(s), {len(r.skills)} skill(s)")

    if state.ranked_jobs:
        table = Table(title="Ranked jobs")
        table.add_column("#", justify="right")
        table.add_column("job_id")
        table.add_column("title")
        table.add_column("score", justify="right")
        table.add_column("must-have %", justify="right")
        table.add_column("recommendation")
        for i, ranked in enumerate(state.ranked_jobs, 1):
            table.add_row(
                str(i),
                ranked.job_id,
                ranked.job_json.title or "-",
                str(ranked.match.score),
                f"{ranked.match.must_have_coverage_pct:.0f}",
                ranked.match.recommendation,
            )
        console.print(table)

    for out in state.tailored_outputs:
        guard = out.guard_report
        verdict_color = "green" if guard.verdict == "PASS" else "red"
        console.print(
            Panel(
                f"{out.cover_letter_pack.subject_line}\n"
                f"words: {out.cover_letter_pack.word_count} | "
                f"guard: [{verdict_color}]{guard.verdict}[/{verdict_color}] ({guard.confidence:.2f})"
                + (f"\nconfirm: {', '.join(guard.requires_user_confirmation)}" if guard.requires_user_confirmation else ""),
                title=f"Tailored: {out.job_id}",
            )
        )

    if state.notes_for_ui:
        console.print("\n[yellow]Notes:[/yellow]")
        for note in state.notes_for_ui:
            console.print(f"  - {note}")


@app.command("cache-stats")
def cache_stats(
    clear: bool = typer.Option(False, "--clear", help="Delete all cached entries"),
    config_path: Path = typer.Option(None, "--config", help="config.yaml path"),
) -> None:
    """Show persistent result-cache statistics."""
    config = load_config(config_path)
    cache = SqliteResultCache(config.cache.resolved_db_path, ttl_seconds=config.cache.ttl_seconds)
    if clear:
        console.print(f"[green]Cleared {cache.clear()} cached entries.[/green]")
        return
    stats = cache.stats()
    console.print(
        f"total: {stats['total']} | active: {stats['active']} | expired: {stats['expired']}"
    )


@app.command()
def history(
    user_id: str = typer.Option(None, "--user", help="Only runs for this user"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of runs to show"),
    config_path: Path = typer.Option(None, "--config", help="config.yaml path"),
) -> None:
    """List recent orchestration runs."""
    config = load_config(config_path)
    store = SqliteRunStore(config.storage.resolved_db_path)
    records = store.get_history(user_id, limit=limit)
    if not records:
        console.print("[yellow]No runs recorded.[/yellow]")
        return

    table = Table(title="Run history")
    table.add_column("created")
    table.add_column("run_id")
    table.add_column("user")
    table.add_column("type")
    table.add_column("status")
    table.add_column("tokens", justify="right")
    for rec in records:
        status = rec.status or "incomplete"
        color = STATUS_COLORS.get(status, "dim")
        table.add_row(
            rec.created_at.strftime("%Y-%m-%d %H:%M"),
            rec.run_id,
            rec.user_id,
            rec.run_type,
            f"[{color}]{status}[/{color}]",
            f"{rec.token_used_estimate or 0}/{rec.token_budget_total}",
        )
    console.print(table)


if __name__ == "__main__":
    app()
