"""
Galaxy Registry CLI

Commands:
- serve: Run the registry server
- inspect: Show the identity declared by a collection tarball
- path: Print the canonical storage path for a collection version
- parse-filename: Parse an artifact filename into its identity
"""
from __future__ import annotations

import logging
from pathlib import Path

import typer

from .errors import BadRequest
from .manifest import extract_collection_info
from .mappers import run_and_exit
from .printers import print_collection_info, print_identity, print_path
from .registry_types import CollectionIdentity
from .storage.artifact_path import parse_filename

app = typer.Typer(name="galaxy-registry", help="Ansible Galaxy v3 registry")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8080, "--port", help="Bind port"),
    log_level: str = typer.Option("info", "--log-level", envvar="GALAXY_LOG_LEVEL", help="Logging level"),
) -> None:
    """Run the registry server with settings from the environment."""

    def _serve() -> None:
        import uvicorn

        from .server import create_app

        logging.basicConfig(
            level=log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        uvicorn.run(create_app(), host=host, port=port, log_level=log_level.lower())

    run_and_exit(_serve)


@app.command()
def inspect(
    tarball: Path = typer.Argument(..., help="Collection tarball (.tar.gz)"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
) -> None:
    """Show the identity and canonical path declared by a collection tarball."""

    def _inspect() -> None:
        if not tarball.is_file():
            raise BadRequest(f"Not a file: {tarball}")
        with open(tarball, "rb") as f:
            info = extract_collection_info(f)
        print_collection_info(info, as_json=as_json)

    run_and_exit(_inspect)


@app.command()
def path(
    namespace: str = typer.Argument(..., help="Collection namespace"),
    name: str = typer.Argument(..., help="Collection name"),
    version: str = typer.Argument(..., help="Collection version"),
) -> None:
    """Print the canonical storage path for a collection version."""
    run_and_exit(lambda: print_path(CollectionIdentity(namespace, name, version)))


@app.command("parse-filename")
def parse_filename_command(
    filename: str = typer.Argument(..., help="Artifact filename, e.g. community-general-5.0.0.tar.gz"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
) -> None:
    """Parse an artifact filename into namespace, name and version."""

    def _parse() -> None:
        identity = parse_filename(filename)
        if identity is None:
            raise BadRequest(f"Not a collection artifact filename: {filename}")
        print_identity(identity, as_json=as_json)

    run_and_exit(_parse)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
