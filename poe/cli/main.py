"""
CLI for operating and inspecting a proof-of-existence claim registry.
"""

import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from poe.chain.calls import Call, execute
from poe.core.encoding import fingerprint_hex, parse_fingerprint
from poe.core.errors import RegistryError
from poe.core.types import MAX_HEIGHT
from poe.crypto.hashing import events_root, state_root
from poe.crypto.keys import AccountKeyPair
from poe.registry.claims import ClaimRegistry
from poe.storage import SQLiteStorage

app = typer.Typer(
    name="poe-registry",
    help="Create, revoke, transfer and inspect proof-of-existence claims",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

DB_OPTION = typer.Option(None, "--db", help="Path to SQLite database (overrides POE_DB_PATH env var)")
HEX_OPTION = typer.Option(False, "--hex", help="Read FINGERPRINT as hex instead of UTF-8 text")
HEIGHT_OPTION = typer.Option(
    None, "--height", "-H", min=0, max=MAX_HEIGHT,
    help="Block height (default: latest recorded height)",
)
CALLER_OPTION = typer.Option(None, "--caller", "-c", help="Caller identity")
KEY_OPTION = typer.Option(
    None, "--key", envvar="POE_PRIVATE_KEY",
    help="Caller private key (base64url); its public key is the identity",
)


def get_db_path(db_flag: Optional[Path] = None) -> Path:
    """Resolve DB path in this order:
    1. --db flag
    2. POE_DB_PATH environment variable
    3. Default: ~/.poe/registry.db
    """
    if db_flag:
        path = db_flag.resolve()
    else:
        env_path = os.environ.get("POE_DB_PATH")
        if env_path:
            path = Path(env_path).resolve()
        else:
            path = Path.home() / ".poe" / "registry.db"

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _fingerprint(value: str, as_hex: bool) -> bytes:
    try:
        return parse_fingerprint(value, hex=as_hex)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(2)


def _display(fingerprint: bytes) -> str:
    """Hex, plus the text form when the bytes are printable UTF-8."""
    try:
        text = fingerprint.decode("utf-8")
    except UnicodeDecodeError:
        return fingerprint_hex(fingerprint)
    if text.isprintable():
        return f"{fingerprint_hex(fingerprint)} ({escape(text)})"
    return fingerprint_hex(fingerprint)


def _open_existing(db: Optional[Path]) -> SQLiteStorage:
    db_path = get_db_path(db)
    if not db_path.exists():
        console.print(f"[red]Database file not found: {db_path}[/]")
        console.print("[yellow]To get started:[/]")
        console.print("  • Create a claim first: poe-registry create <fingerprint> --caller <id>")
        console.print("  • Set env var: export POE_DB_PATH=/path/to/registry.db")
        raise typer.Exit(1)
    try:
        return SQLiteStorage(db_path)
    except Exception as e:
        console.print(f"[red]Failed to open database: {str(e)}[/]")
        raise typer.Exit(1)


def _resolve_caller(caller: Optional[str], key: Optional[str]) -> str:
    if key:
        try:
            return AccountKeyPair.from_private_b64url(key).identity
        except ValueError as e:
            console.print(f"[red]Invalid private key: {e}[/]")
            raise typer.Exit(2)
    if caller:
        return caller
    console.print("[red]A caller is required: pass --caller or --key[/]")
    raise typer.Exit(2)


def _submit(db: Optional[Path], caller: str, call: Call, height: Optional[int]) -> None:
    """Apply one call to the on-disk registry and report the outcome."""
    try:
        storage = SQLiteStorage(get_db_path(db))
    except Exception as e:
        console.print(f"[red]Failed to open database: {str(e)}[/]")
        raise typer.Exit(1)

    with storage:
        latest = storage.latest_height()
        if height is None:
            height = latest
        elif height < latest:
            console.print(f"[red]Height {height} is below the latest recorded height {latest}[/]")
            raise typer.Exit(2)

        registry = ClaimRegistry(storage, storage)
        try:
            event = execute(registry, caller, call, height)
        except RegistryError as e:
            console.print(f"[red]✗ {e.code}[/]: {_display(call.fingerprint)}")
            raise typer.Exit(1)

    console.print(f"[green]✓ {event.name}[/] at height {height}")
    console.print(f"  fingerprint: {_display(event.fingerprint)}")
    console.print(f"  owner:       {escape(event.owner)}")


@app.callback()
def main():
    """Manage a proof-of-existence claim registry."""
    pass


@app.command()
def create(
    fingerprint: str = typer.Argument(..., help="Content fingerprint to claim"),
    caller: Optional[str] = CALLER_OPTION,
    key: Optional[str] = KEY_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    as_hex: bool = HEX_OPTION,
    db: Optional[Path] = DB_OPTION,
):
    """Claim an unclaimed fingerprint."""
    who = _resolve_caller(caller, key)
    _submit(db, who, Call.create_claim(_fingerprint(fingerprint, as_hex)), height)


@app.command()
def revoke(
    fingerprint: str = typer.Argument(..., help="Claimed fingerprint to release"),
    caller: Optional[str] = CALLER_OPTION,
    key: Optional[str] = KEY_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    as_hex: bool = HEX_OPTION,
    db: Optional[Path] = DB_OPTION,
):
    """Revoke a claim you own."""
    who = _resolve_caller(caller, key)
    _submit(db, who, Call.revoke_claim(_fingerprint(fingerprint, as_hex)), height)


@app.command()
def transfer(
    fingerprint: str = typer.Argument(..., help="Claimed fingerprint to hand over"),
    receiver: str = typer.Argument(..., help="Identity of the new owner"),
    caller: Optional[str] = CALLER_OPTION,
    key: Optional[str] = KEY_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    as_hex: bool = HEX_OPTION,
    db: Optional[Path] = DB_OPTION,
):
    """Transfer a claim you own to another identity."""
    who = _resolve_caller(caller, key)
    _submit(db, who, Call.transfer_claim(receiver, _fingerprint(fingerprint, as_hex)), height)


@app.command()
def show(
    fingerprint: str = typer.Argument(..., help="Fingerprint to look up"),
    as_hex: bool = HEX_OPTION,
    db: Optional[Path] = DB_OPTION,
):
    """Show who owns a fingerprint and since which height."""
    fp = _fingerprint(fingerprint, as_hex)
    with _open_existing(db) as storage:
        claim = storage.get(fp)

    if claim is None:
        console.print(f"[yellow]Unclaimed: {_display(fp)}[/]")
        raise typer.Exit(1)

    console.print(f"[bold cyan]{_display(fp)}[/]")
    console.print(f"  owner:         {escape(claim.owner)}")
    console.print(f"  registered_at: {claim.registered_at}")


@app.command()
def claims(
    owner: Optional[str] = typer.Option(None, "--owner", help="Only claims held by this identity"),
    db: Optional[Path] = DB_OPTION,
):
    """List all current claims."""
    with _open_existing(db) as storage:
        entries = storage.items()

    if owner is not None:
        entries = [(fp, c) for fp, c in entries if c.owner == owner]

    if not entries:
        console.print("[yellow]No claims found.[/]")
        return

    table = Table(title="Claims")
    table.add_column("Fingerprint")
    table.add_column("Owner")
    table.add_column("Height")
    for fp, claim in entries:
        table.add_row(_display(fp), escape(claim.owner), str(claim.registered_at))

    console.print(table)


@app.command()
def events(
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of recent events to show"),
    db: Optional[Path] = DB_OPTION,
):
    """Show the most recent registry events in commit order."""
    with _open_existing(db) as storage:
        records = storage.load_events(limit=limit)

    if not records:
        console.print("[yellow]No events recorded yet.[/]")
        return

    table = Table(title="Events")
    table.add_column("Height")
    table.add_column("Event")
    table.add_column("Owner")
    table.add_column("Fingerprint")
    for event, height in records:
        table.add_row(str(height), event.name, escape(event.owner), _display(event.fingerprint))

    console.print(table)


@app.command()
def root(
    db: Optional[Path] = DB_OPTION,
):
    """Print the state root and event-chain head, for comparing replicas."""
    with _open_existing(db) as storage:
        console.print(f"state_root:  {state_root(storage)}")
        console.print(f"events_root: {events_root(storage.load_events()) or '—'}")


@app.command()
def keygen():
    """Generate an account key pair."""
    keys = AccountKeyPair.generate()
    console.print(f"identity:    {keys.identity}")
    console.print(f"private_key: {keys.private_key_b64url()}")
    console.print("[yellow]Keep the private key secret; pass it with --key or POE_PRIVATE_KEY.[/]")


if __name__ == "__main__":
    app()
