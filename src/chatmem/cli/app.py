"""Main CLI application using Typer."""

import sys

import typer
from rich.console import Console

from chatmem import __version__

app = typer.Typer(
    name="chatmem",
    help="chatmem - Conversation memory service for streaming chat backends",
    no_args_is_help=True,
)

console = Console()

CONFIG_OPTION_HELP = "Path to config file (default: ~/.chatmem/chatmem.yaml)"


@app.command()
def version():
    """Show chatmem version."""
    console.print(f"chatmem version {__version__}")


@app.command()
def start(
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    detach: bool = typer.Option(False, "--detach", "-d", help="Run server in background"),
):
    """Start chatmem API server."""
    from chatmem.cli.server_cmd import start_command

    start_command(config_path=config_path, detach=detach)


@app.command()
def stop():
    """Stop chatmem API server."""
    from chatmem.cli.server_cmd import stop_command

    stop_command()


@app.command()
def status(
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Check chatmem server and store status."""
    from chatmem.cli.server_cmd import status_command

    status_command(config_path=config_path)


# History commands
history_app = typer.Typer(help="Inspect and manage conversation history")
app.add_typer(history_app, name="history")


@history_app.command("show")
def history_show(
    conversation_id: str = typer.Argument(..., help="Conversation id"),
    last_n: int = typer.Option(-1, "--last-n", "-n", help="Only the N most recent messages"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Show a conversation's messages, oldest first."""
    from chatmem.cli.history_cmd import show_history

    show_history(conversation_id, last_n=last_n, config_path=config_path)


@history_app.command("page")
def history_page(
    conversation_id: str = typer.Argument(..., help="Conversation id"),
    page: int = typer.Option(1, "--page", "-p", help="Page number, 1 = newest"),
    size: int = typer.Option(10, "--size", "-s", help="Messages per page (1-100)"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Show one page of history, newest first."""
    from chatmem.cli.history_cmd import show_page

    show_page(conversation_id, page=page, size=size, config_path=config_path)


@history_app.command("info")
def history_info(
    conversation_id: str = typer.Argument(..., help="Conversation id"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Show existence, size and expiry of a conversation."""
    from chatmem.cli.history_cmd import show_info

    show_info(conversation_id, config_path=config_path)


@history_app.command("clear")
def history_clear(
    conversation_id: str = typer.Argument(..., help="Conversation id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Delete a conversation."""
    from chatmem.cli.history_cmd import clear_history

    if not yes and not typer.confirm(f"Delete conversation '{conversation_id}'?"):
        raise typer.Abort()
    clear_history(conversation_id, config_path=config_path)


@history_app.command("list")
def history_list(
    admin_key: str = typer.Option(..., "--admin-key", help="Administrator key"),
    prefix: str = typer.Option(None, "--prefix", help="Only ids starting with this prefix"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """List every live conversation."""
    from chatmem.cli.history_cmd import list_conversations

    list_conversations(admin_key, prefix=prefix, config_path=config_path)


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
