"""CLI interface for the Suvidha assistant."""

import json
import uuid
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ....config import settings, setup_logging
from ....core.domain import EligibilityCriterion, KnowledgeCategory, QuestionType
from ....core.domain.utils import normalize_text
from ...common.exception_handler import format_exception_json

app = typer.Typer(
    name="suvidha",
    help="Suvidha - citizen-services assistant: scheme eligibility and knowledge-grounded chat",
    add_completion=False,
)

console = Console(legacy_windows=False)

# Show full JSON error details
DEBUG_MODE = settings.debug

DEFAULT_SEED_FILE = Path("seeds/suvidha_seed.json")


def handle_cli_error(exc: Exception) -> None:
    """Display an error in the CLI.

    In debug mode, shows full JSON error details. Otherwise shows the error
    code, message and raise site.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, default=str),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    error_code = error_data["error"].get("code", "UNKNOWN")
    console.print(f"\n[red]Error [{error_code}]:[/] {error_data['error']['message']}")
    console.print(f"[dim]Type: {error_data['error']['type']}[/]")

    location = error_data.get("location", {})
    if location:
        loc_str = f"{location.get('file', '?')}:{location.get('line', '?')} in {location.get('method', '?')}"
        console.print(f"[dim]Location: {loc_str}[/]")

    console.print("[dim]Set DEBUG=true for full details[/]")


@app.callback()
def main(
    log_level: str = typer.Option(None, help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    setup_logging(
        level=log_level or settings.log_level,
        log_file=settings.log_file,
        json_format=settings.log_json,
    )


@app.command()
def seed(
    path: Path = typer.Argument(DEFAULT_SEED_FILE, help="JSON seed document"),
) -> None:
    """Load schemes, policies, tariffs and demo citizens into the database."""
    from ....adapters.outbound.store.seed import load_seed_file
    from ....composition.container import get_store

    if not path.exists():
        console.print(f"[red]Error:[/] Seed file not found: {path}")
        raise typer.Exit(1)

    try:
        report = load_seed_file(get_store(), path)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(
        f"[green]OK[/] Seeded {report.schemes} schemes, {report.policies} policies, "
        f"{report.tariffs} tariffs, {report.citizens} citizens, {report.bills} bills"
    )
    console.print("[dim]Run 'suvidha ingest' to rebuild the knowledge base[/]")


@app.command()
def ingest() -> None:
    """Clear and rebuild the knowledge base with fresh embeddings."""
    from ....composition.container import get_ingestion_service
    from .progress import IngestProgress

    if not settings.has_bedrock_credentials:
        console.print(
            "[red]Error:[/] Bedrock credentials not set.\n"
            "Set AWS_BEARER_TOKEN_BEDROCK and AWS_BEDROCK_ENDPOINT in .env"
        )
        raise typer.Exit(1)

    console.print("[bold]Suvidha Knowledge Base[/]\n")
    try:
        service = get_ingestion_service()
        total = sum(1 for _ in service.drafts())
        console.print(f"[dim]Embedding {total} entries with {settings.embedding_model}...[/]")

        with IngestProgress(console, total) as progress:
            report = service.rebuild(on_progress=progress.update)
        progress.summary(report)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text"),
    category: KnowledgeCategory | None = typer.Option(None, help="Restrict to one category"),
    top_k: int = typer.Option(5, "--top-k", min=1, max=20, help="Maximum results"),
) -> None:
    """Search the knowledge base by semantic similarity."""
    from ....composition.container import get_retriever

    try:
        with console.status("[bold green]Searching...[/]"):
            results = get_retriever().search(query, category=category, top_k=top_k)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No matching knowledge entries. Has 'suvidha ingest' been run?[/]")
        return

    for rank, result in enumerate(results, start=1):
        department = f" · {result.department}" if result.department else ""
        console.print(
            Panel(
                result.content,
                title=f"[bold]{rank}. {result.title}[/]",
                subtitle=f"[dim]{result.category}{department} · {result.relevance_score:.3f}[/]",
                border_style="cyan",
            )
        )


def _print_reply(content: str, function_call: dict[str, Any] | None) -> None:
    console.print()
    console.print(Panel(Markdown(content), title="[bold blue]Suvidha[/]", border_style="blue"))
    if function_call:
        console.print(f"[dim]Function: {function_call.get('name')}[/]")


@app.command()
def chat(
    citizen: str | None = typer.Option(None, "--citizen", help="Act as this citizen id"),
) -> None:
    """Start an interactive chat session with the assistant."""
    from ....composition.container import get_orchestrator

    console.print(
        Panel.fit(
            "[bold blue]Suvidha[/]\n"
            "[dim]Citizen-services assistant[/]\n\n"
            "Examples:\n"
            "• Show my unpaid electricity bills\n"
            "• Am I eligible for Jal Jeevan Mission?\n"
            "• How do I apply for a new water connection?\n\n"
            "[dim]Type 'quit' or 'exit' to leave[/]",
            title="Welcome to Suvidha",
            border_style="blue",
        )
    )

    try:
        orchestrator = get_orchestrator()
        conversation = orchestrator.start_conversation(citizen)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if conversation.is_anonymous:
        console.print("[dim]Anonymous session: account functions will ask you to log in[/]")

    while True:
        try:
            message = Prompt.ask("\n[bold cyan]You[/]")

            if message.lower() in ("quit", "exit", "q"):
                console.print("[dim]Goodbye![/]")
                break

            if not message.strip():
                continue

            with console.status("[bold green]Thinking...[/]"):
                reply = orchestrator.handle_message(
                    conversation.conversation_id, normalize_text(message), citizen
                )
            _print_reply(reply.content, reply.function_call)

        except KeyboardInterrupt:
            console.print("\n[dim]Goodbye![/]")
            break
        except Exception as exc:
            handle_cli_error(exc)


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message for the assistant"),
    citizen: str | None = typer.Option(None, "--citizen", help="Act as this citizen id"),
) -> None:
    """Send a single message in a fresh conversation."""
    from ....composition.container import get_orchestrator

    try:
        with console.status("[bold green]Thinking...[/]"):
            reply = get_orchestrator().handle_message(str(uuid.uuid4()), normalize_text(message), citizen)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    _print_reply(reply.content, reply.function_call)


def _prompt_answer(criterion: EligibilityCriterion, prefilled: Any) -> Any:
    """Ask one survey question; an empty reply leaves it unanswered."""
    default = "" if prefilled is None else str(prefilled)
    label = f"[bold]{criterion.question_text}[/] [dim]({criterion.weightage} pts)[/]"

    if criterion.question_type == QuestionType.YES_NO:
        console.print("[dim]YES / NO[/]")
    elif criterion.options:
        hint = " (comma separated)" if criterion.question_type == QuestionType.MULTIPLE_CHOICE else ""
        console.print(f"[dim]Options: {', '.join(criterion.options)}{hint}[/]")

    raw = Prompt.ask(label, default=default).strip()
    if criterion.question_type == QuestionType.MULTIPLE_CHOICE:
        return [part.strip() for part in raw.split(",") if part.strip()] or None
    return raw or None


@app.command("check-eligibility")
def check_eligibility(
    scheme_id: str = typer.Argument(..., help="Scheme id"),
    answers: str | None = typer.Option(
        None, "--answers", help='JSON object of criterion id -> answer; prompts when omitted'
    ),
    citizen: str | None = typer.Option(None, "--citizen", help="Pre-fill from this citizen's profile"),
    save: bool = typer.Option(False, "--save", help="Save answers to the citizen's profile"),
) -> None:
    """Score answers against a scheme's weighted eligibility criteria."""
    from ....composition.container import get_eligibility_service, get_store

    try:
        service = get_eligibility_service()
        if answers is not None:
            answer_set = json.loads(answers)
            if not isinstance(answer_set, dict):
                raise typer.BadParameter("--answers must be a JSON object")
        else:
            scheme = get_store().get_scheme(scheme_id)
            if scheme is None:
                console.print(f"[red]Error:[/] Scheme not found: {scheme_id}")
                raise typer.Exit(1)
            prefilled = service.prefill(scheme_id, citizen) if citizen else {}
            console.print(Panel.fit(scheme.description, title=f"[bold]{scheme.title}[/]"))
            answer_set = {
                c.criterion_id: _prompt_answer(c, prefilled.get(c.criterion_id)) for c in scheme.criteria
            }

        check = service.check(scheme_id, answer_set, citizen_id=citizen, save_to_profile=save)
    except (typer.Exit, typer.BadParameter):
        raise
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/] --answers is not valid JSON: {exc.msg}")
        raise typer.Exit(1)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    table = Table(title=check.scheme.title)
    table.add_column("Question")
    table.add_column("Answer")
    table.add_column("Result", justify="center")
    table.add_column("Score", justify="right")
    for outcome in check.result.breakdown:
        table.add_row(
            outcome.question_text,
            "-" if outcome.answer is None else str(outcome.answer),
            "[green]✓[/]" if outcome.passed else "[red]✗[/]",
            str(outcome.score),
        )
    console.print(table)

    color = {"ELIGIBLE": "green", "PARTIALLY_ELIGIBLE": "yellow"}.get(check.result.tier.value, "red")
    console.print(
        f"[bold {color}]{check.result.tier.value}[/] "
        f"{check.result.total_score}/{check.result.max_score} ({check.result.percentage:.2f}%)"
    )
    console.print(check.message)
    if check.saved_to_profile:
        console.print("[dim]Answers saved to profile[/]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    console.print(f"[bold]Suvidha API[/] on http://{host}:{port} [dim](docs at /docs)[/]")
    uvicorn.run(
        "suvidha.adapters.inbound.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def status() -> None:
    """Show configuration and knowledge-base status."""
    from ....composition.container import get_store

    console.print("[bold]Suvidha Status[/]\n")

    if settings.has_bedrock_credentials:
        console.print("✅ Bedrock credentials configured")
    else:
        console.print("❌ Bedrock credentials not set (set AWS_BEARER_TOKEN_BEDROCK and AWS_BEDROCK_ENDPOINT)")

    if settings.llm_provider == "gemini":
        mark = "✅" if settings.google_api_key else "❌"
        console.print(f"{mark} Gemini provider (GOOGLE_API_KEY {'set' if settings.google_api_key else 'missing'})")
    else:
        console.print(f"• LLM provider: {settings.llm_provider}")

    console.print(f"• Database: {settings.database_path}")

    console.print("\n[bold]Knowledge Base:[/]")
    try:
        counts = get_store().count_knowledge_entries()
    except Exception as exc:
        handle_cli_error(exc)
        return

    total = 0
    for category in KnowledgeCategory:
        count = counts.get(category.value, 0)
        total += count
        mark = "✅" if count > 0 else "⚪"
        console.print(f"  {mark} {category.value}: {count} entries")

    if total == 0:
        console.print("\n[yellow]Knowledge base is empty. Run 'suvidha seed' then 'suvidha ingest'.[/]")
    else:
        console.print(f"\n[green]Total: {total} active entries[/]")


if __name__ == "__main__":
    app()
