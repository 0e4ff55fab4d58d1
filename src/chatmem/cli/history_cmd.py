"""CLI commands for inspecting and managing conversation history."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from chatmem.llm.client import Message
from chatmem.memory.history import HistoryService

console = Console()


def _history_service(config_path: str | None) -> HistoryService:
    from chatmem.config.loader import load_config
    from chatmem.memory.factory import create_conversation_store

    config = load_config(config_path)
    return HistoryService(create_conversation_store(config))


def _messages_table(title: str, messages: list[Message]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role", style="cyan")
    table.add_column("Content")

    for index, message in enumerate(messages, start=1):
        content = message.content if len(message.content) <= 200 else message.content[:197] + "..."
        table.add_row(str(index), message.role, content)
    return table


def show_history(conversation_id: str, last_n: int = -1, config_path: str | None = None) -> None:
    """Print a conversation's messages, oldest first."""
    view = _history_service(config_path).get_history(conversation_id, last_n)

    if not view.messages:
        console.print(f"[dim]No history for conversation '{conversation_id}'.[/dim]")
        return

    console.print(
        _messages_table(
            f"{conversation_id} ({view.returned_count} of {view.total_count})", view.messages
        )
    )
    console.print(f"Expires in: {view.remaining_ttl}s")


def show_page(
    conversation_id: str, page: int = 1, size: int = 10, config_path: str | None = None
) -> None:
    """Print one page of history, newest first."""
    from chatmem.memory.pagination import InvalidPageRequestError

    try:
        result = _history_service(config_path).page(conversation_id, page, size)
    except InvalidPageRequestError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None

    console.print(
        _messages_table(
            f"{conversation_id} page {result.page}/{result.total_pages}", result.messages
        )
    )
    nav = []
    if result.has_previous:
        nav.append(f"previous: --page {result.page - 1}")
    if result.has_next:
        nav.append(f"next: --page {result.page + 1}")
    if nav:
        console.print("[dim]" + "  ".join(nav) + "[/dim]")


def show_info(conversation_id: str, config_path: str | None = None) -> None:
    """Print existence, size and expiry of a conversation."""
    info = _history_service(config_path).info(conversation_id)

    status = "[green]live[/green]" if info.exists else "[yellow]absent[/yellow]"
    console.print(f"\n[bold cyan]{info.conversation_id}[/bold cyan] {status}")
    console.print(f"  Messages:  {info.message_count}")
    console.print(f"  TTL:       {info.remaining_ttl}s ({info.remaining_ttl_hours:.1f}h)")


def clear_history(conversation_id: str, config_path: str | None = None) -> None:
    """Delete a conversation."""
    from chatmem.memory.store import StoreUnavailableError

    try:
        _history_service(config_path).clear(conversation_id)
    except StoreUnavailableError as e:
        console.print(f"[red]Failed to clear conversation: {e}[/red]")
        raise typer.Exit(1) from None
    console.print(f"[green]Cleared conversation '{conversation_id}'[/green]")


def list_conversations(
    admin_key: str | None, prefix: str | None = None, config_path: str | None = None
) -> None:
    """List every live conversation (requires the admin key)."""
    from chatmem.config.loader import load_config
    from chatmem.memory.directory import NotAuthorizedError, admin_key_matches
    from chatmem.memory.factory import create_conversation_store

    config = load_config(config_path)
    service = HistoryService(create_conversation_store(config))

    try:
        details = service.directory.list_details(
            authorized=admin_key_matches(admin_key, config.history.admin_key), key_prefix=prefix
        )
    except NotAuthorizedError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None

    if not details:
        console.print("[dim]No conversations found.[/dim]")
        return

    table = Table(title=f"Conversations ({len(details)})")
    table.add_column("Conversation", style="cyan")
    table.add_column("Messages", justify="right")
    table.add_column("TTL (s)", justify="right", style="green")
    for detail in details:
        table.add_row(detail.conversation_id, str(detail.message_count), str(detail.remaining_ttl))
    console.print(table)
