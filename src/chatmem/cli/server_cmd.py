"""Run and supervise the chatmem API server."""

import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

import httpx
import typer
from redis.exceptions import RedisError
from rich.console import Console

from chatmem.config.loader import CONFIG_ENV_VAR, ConfigError, load_config, resolve_config_path
from chatmem.config.schema import ChatMemConfig
from chatmem.memory.store import ConversationStore

STATE_DIR = Path.home() / ".chatmem"
PID_FILE = STATE_DIR / "server.pid"
LOG_FILE = STATE_DIR / "server.log"

console = Console()


def _running_pid() -> int | None:
    """Return the PID recorded for a live server, clearing stale PID files."""
    try:
        pid = int(PID_FILE.read_text().strip())
    except FileNotFoundError:
        return None
    except ValueError:
        PID_FILE.unlink(missing_ok=True)
        return None

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        PID_FILE.unlink(missing_ok=True)
        return None
    except PermissionError:
        # alive but owned by another user
        return pid
    return pid


def _record_pid(pid: int) -> None:
    PID_FILE.parent.mkdir(parents=True, exist_ok=True)
    PID_FILE.write_text(str(pid))


def _load(config_path: str | None) -> ChatMemConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None


def describe_store(config: ChatMemConfig, store: ConversationStore | None) -> str:
    """Summarise which conversation store is in use and whether it answers.

    Args:
        config: chatmem configuration
        store: The store built from ``config``, or None if building it failed
    """
    from chatmem.memory.redis_store import RedisConversationStore

    redis_target = f"redis://{config.redis.host}:{config.redis.port}/{config.redis.db}"
    if store is None:
        return f"{redis_target} [red](unreachable)[/red]"
    if isinstance(store, RedisConversationStore):
        state = "[green]reachable[/green]" if store.ping() else "[red]unreachable[/red]"
        return f"{redis_target} ({state})"
    if config.memory.backend == "redis":
        return f"in-memory [yellow](fallback, {redis_target} unreachable)[/yellow]"
    return "in-memory"


def _build_store(config: ChatMemConfig) -> ConversationStore | None:
    from chatmem.memory.factory import create_conversation_store

    try:
        return create_conversation_store(config)
    except RedisError:
        return None


def start_command(config_path: str | None = None, detach: bool = False) -> None:
    """Start the chatmem API server.

    Args:
        config_path: Optional path to config file
        detach: Run server in background
    """
    existing_pid = _running_pid()
    if existing_pid:
        console.print(f"[yellow]Server already running (PID {existing_pid})[/yellow]")
        console.print("Run [bold]chatmem stop[/bold] first.")
        raise typer.Exit(1)

    config = _load(config_path)
    url = f"http://{config.server.host}:{config.server.port}"

    if detach:
        _spawn(config, resolve_config_path(config_path))
        console.print(f"[green]chatmem server started in background[/green] at {url}")
        console.print(f"  Store backend: {config.memory.backend}")
        console.print(f"  Log: {LOG_FILE}")
        console.print("\nRun [bold]chatmem status[/bold] to check it, [bold]chatmem stop[/bold] to stop.")
        return

    import uvicorn

    from chatmem.server.app import create_app

    logging.basicConfig(
        level=config.logging.level,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )

    store = _build_store(config)
    console.print(f"Store: {describe_store(config, store)}")
    if store is None:
        console.print("[red]Cannot start without a conversation store.[/red]")
        console.print("Start Redis or set [bold]memory.fallback_to_memory: true[/bold].")
        raise typer.Exit(1)

    app = create_app(config, store=store)
    _record_pid(os.getpid())
    console.print(f"[green]Serving chatmem on {url}[/green] (Ctrl+C to stop)")
    try:
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level=config.logging.level.lower(),
        )
    finally:
        PID_FILE.unlink(missing_ok=True)


def _spawn(config: ChatMemConfig, config_file: Path) -> None:
    """Launch ``uvicorn chatmem.server.asgi:app`` detached, logging to LOG_FILE."""
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "chatmem.server.asgi:app",
        "--host",
        config.server.host,
        "--port",
        str(config.server.port),
        "--log-level",
        config.logging.level.lower(),
    ]
    # the child loads its config through the ASGI module, not argv
    env = {**os.environ, CONFIG_ENV_VAR: str(config_file)}

    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    with LOG_FILE.open("a") as log:
        proc = subprocess.Popen(
            cmd,
            stdout=log,
            stderr=subprocess.STDOUT,
            env=env,
            start_new_session=True,
        )
    _record_pid(proc.pid)


def stop_command() -> None:
    """Stop the chatmem API server."""
    pid = _running_pid()
    if pid is None:
        console.print("[yellow]No running chatmem server found.[/yellow]")
        return

    try:
        os.kill(pid, signal.SIGTERM)
        console.print(f"[green]Stopped chatmem server (PID {pid})[/green]")
    except ProcessLookupError:
        console.print("[yellow]Server process already exited.[/yellow]")
    finally:
        PID_FILE.unlink(missing_ok=True)


def status_command(config_path: str | None = None) -> None:
    """Report whether the server is up and whether its store answers.

    Exits 1 when the server does not respond.
    """
    config = _load(config_path)
    url = f"http://{config.server.host}:{config.server.port}"
    pid = _running_pid()

    try:
        resp = httpx.get(f"{url}/health", timeout=3.0)
        health = resp.json()
    except (httpx.HTTPError, ValueError):
        health = None

    if health is None:
        if pid:
            console.print(f"[yellow]PID {pid} exists but {url}/health does not answer.[/yellow]")
        else:
            console.print("[yellow]Server is not running.[/yellow]")
        console.print(f"  Store: {describe_store(config, _build_store(config))}")
        raise typer.Exit(1)

    store_ok = health.get("store") == "ok"
    console.print(f"[green]Server is running[/green] at {url}")
    if pid:
        console.print(f"  PID:     {pid}")
    console.print(f"  Version: {health.get('version', 'unknown')}")
    console.print(
        f"  Store:   {config.memory.backend} "
        + ("[green](ok)[/green]" if store_ok else "[red](unavailable)[/red]")
    )
