"""
jarvis.cli - Terminal adapter for the assistant.

Runs the same conversation loop as the HTTP API. The CLI session owns
the conversation history and hands it to the orchestrator every turn.

Commands
--------
  chat   Interactive chat session (type 'exit' to quit)
  ask    One-shot question

Usage
-----
  jarvis chat
  jarvis ask "latest iPhone news"
"""
import asyncio

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from jarvis.core.config import get_settings
from jarvis.core.logging_config import setup_logging
from jarvis.memory.conversation import ConversationMemory
from jarvis.services.orchestrator import ConversationOrchestrator, get_orchestrator

app = typer.Typer(
    name="jarvis",
    help="Jarvis, a chat assistant that can search the web.",
    add_completion=False,
)
console = Console()

EXIT_WORDS = ("exit", "quit")


def _configure(verbose: bool) -> ConversationOrchestrator:
    """Set up logging and build the orchestrator, exiting on bad config."""
    try:
        settings = get_settings()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1)

    setup_logging("DEBUG" if verbose else "WARNING", log_to_file=settings.log_to_file)
    return get_orchestrator()


def _run_chat(orchestrator: ConversationOrchestrator, memory: ConversationMemory) -> None:
    console.print(Panel(
        "[bold]Jarvis[/bold]\n"
        "Ask me anything. Type [bold]exit[/bold] to stop.",
        border_style="cyan",
    ))

    while True:
        try:
            user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]", console=console)
        except (KeyboardInterrupt, EOFError):
            console.print("\n[dim]Goodbye![/dim]")
            break

        text = user_input.strip()
        if text.lower() in EXIT_WORDS:
            console.print("[dim]Goodbye![/dim]")
            break
        if not text:
            continue

        try:
            with console.status("[bold cyan]Thinking…", spinner="dots"):
                reply = asyncio.run(orchestrator.reply(text, memory.get_history()))
        except Exception as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            continue

        memory.add_user_message(text)
        memory.add_assistant_message(reply)

        console.print()
        console.print(Panel(Markdown(reply or "_(no answer)_"), title="Jarvis", border_style="green"))


@app.command()
def chat(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs."),
) -> None:
    """Start an interactive chat session."""
    orchestrator = _configure(verbose)
    _run_chat(orchestrator, ConversationMemory())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs."),
) -> None:
    """Ask a single question and print the answer."""
    orchestrator = _configure(verbose)

    try:
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            reply = asyncio.run(orchestrator.reply(question))
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(Markdown(reply or "_(no answer)_"))


if __name__ == "__main__":
    app()
