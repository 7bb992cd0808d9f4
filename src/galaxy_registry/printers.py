"""
Human-readable output formatting.

Centralizes CLI output so commands stay thin; ``--json`` output bypasses
rich and is echoed verbatim.
"""
from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .models import CollectionInfo
from .registry_types import CollectionIdentity
from .storage.artifact_path import build_filename, build_path

_console = Console()


def identity_document(identity: CollectionIdentity, description: Optional[str] = None) -> dict:
    document = {
        "namespace": identity.namespace,
        "name": identity.name,
        "version": identity.version,
        "filename": build_filename(identity),
        "path": build_path(identity),
    }
    if description:
        document["description"] = description
    return document


def print_collection_info(info: CollectionInfo, as_json: bool = False) -> None:
    """
    Print the identity declared by a collection archive.

    Args:
        info: collection_info block from the archive's MANIFEST.json
        as_json: Emit a JSON document instead of a table
    """
    identity = CollectionIdentity(info.namespace, info.name, info.version)
    if as_json:
        typer.echo(json.dumps(identity_document(identity, info.description), indent=2))
        return

    table = Table(title=f"Collection {identity.namespace}.{identity.name}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", overflow="fold")
    table.add_row("Namespace", identity.namespace)
    table.add_row("Name", identity.name)
    table.add_row("Version", identity.version)
    if info.description:
        table.add_row("Description", info.description)
    _console.print(table)
    _console.print(f"[bold]Path:[/] {build_path(identity)}", soft_wrap=True)


def print_path(identity: CollectionIdentity) -> None:
    typer.echo(build_path(identity))


def print_identity(identity: CollectionIdentity, as_json: bool = False) -> None:
    """Print an identity parsed from an artifact filename."""
    if as_json:
        typer.echo(json.dumps(identity_document(identity), indent=2))
        return
    _console.print(f"[bold]Namespace:[/] {identity.namespace}", soft_wrap=True)
    _console.print(f"[bold]Name:[/] {identity.name}", soft_wrap=True)
    _console.print(f"[bold]Version:[/] {identity.version}", soft_wrap=True)
