"""CLI commands for Artverse."""

import asyncio
import json
import sys
from pathlib import Path

import click

from artverse.config import Settings, clear_settings_cache, get_settings, set_config_path


def _repository(settings: Settings):
    """Engine plus repository for offline commands; caller disposes the engine."""
    from artverse.db.repository import EntityRepository
    from artverse.db.session import create_engine, create_session_maker

    engine = create_engine(settings.db)
    repository = EntityRepository(
        create_session_maker(engine),
        max_artworks_per_gallery=settings.lifecycle.max_artworks_per_gallery,
    )
    return engine, repository


@click.group()
@click.version_option(package_name="artverse")
@click.option(
    "-f",
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (defaults to ./app.yaml)",
)
def cli(config_file):
    """Artverse - galleries, artworks, and their uploaded images."""
    if config_file is not None:
        set_config_path(config_file)
        clear_settings_cache()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, reload, log_level):
    """Run the Artverse server in a single process.

    Gallery locks live in process memory, so running several workers against
    one database would let concurrent uploads race past the artwork quota.
    """
    import signal

    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    config = Config()
    config.application_path = "artverse.asgi:create_asgi_app()"
    config.bind = [f"{host}:{port}"]
    config.loglevel = log_level.upper()
    config.include_server_header = False

    if reload:
        config.use_reloader = True
        from hypercorn.run import run
        run(config)
        return

    from artverse.asgi import create_asgi_app

    app = create_asgi_app()
    shutdown_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)
    try:
        loop.run_until_complete(
            hypercorn_serve(app, config, shutdown_trigger=shutdown_event.wait)
        )
    finally:
        loop.close()


@cli.command("export")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout",
)
def export_cmd(output):
    """Dump galleries, artworks, users and files as JSON."""

    async def run():
        from artverse.db.session import create_tables

        engine, repository = _repository(get_settings())
        try:
            await create_tables(engine)
            return await repository.export_data()
        finally:
            await engine.dispose()

    data = asyncio.run(run())
    text = json.dumps(data.to_json(), indent=2)
    if output is None:
        click.echo(text)
    else:
        output.write_text(text + "\n")
        click.echo(f"Exported to {output}", err=True)


@cli.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--merge", is_flag=True, help="Add to existing data instead of replacing it")
def import_cmd(source, merge):
    """Load a JSON export, replacing the current data."""
    from pydantic import ValidationError as SchemaError

    from artverse.lib.exceptions import QuotaExceededError, ValidationError
    from artverse.schemas import DataExport

    try:
        data = DataExport.model_validate_json(source.read_text())
    except SchemaError as exc:
        click.echo(f"Error: {source} is not a valid export:\n{exc}", err=True)
        sys.exit(1)

    async def run():
        from artverse.db.session import create_tables

        engine, repository = _repository(get_settings())
        try:
            await create_tables(engine)
            return await repository.import_data(data, replace=not merge)
        finally:
            await engine.dispose()

    try:
        counts = asyncio.run(run())
    except (ValidationError, QuotaExceededError) as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    summary = ", ".join(f"{count} {name}" for name, count in counts.items())
    click.echo(f"Imported {summary}")


@cli.command()
def stats():
    """Show storage totals from the file records."""

    async def run():
        from artverse.db.session import create_session_maker, create_tables
        from artverse.lib.storage import create_storage_backend

        settings = get_settings()
        engine, _ = _repository(settings)
        storage = create_storage_backend(settings.storage, create_session_maker(engine))
        try:
            await create_tables(engine)
            return await storage.stats()
        finally:
            await storage.close()
            await engine.dispose()

    result = asyncio.run(run())
    click.echo(f"Files:     {result.total_files}")
    click.echo(f"Size:      {result.total_size_bytes / (1024 * 1024):.2f} MB")
    click.echo(f"Galleries: {result.gallery_count}")


if __name__ == "__main__":
    cli()
