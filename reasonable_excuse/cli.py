import logging
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(help="reasonable-excuse: personal upload / proxy server")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@app.command()
def version():
    """Show version."""
    import importlib.metadata as md

    print(md.version("reasonable-excuse"))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default: PORT)"),
):
    """Run the HTTP server."""
    import uvicorn

    from server.app.config import settings
    from server.app.main import create_app

    _setup_logging(settings.LOG_LEVEL)
    app_ = create_app(settings)
    uvicorn.run(app_, host=host or settings.HOST, port=port or settings.PORT)


@app.command()
def check():
    """Validate configuration the same way the server does at startup."""
    from server.app.config import settings
    from server.app.errors import ConfigError
    from server.app.main import create_app

    try:
        create_app(settings)
    except ConfigError as e:
        typer.echo(f"config error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"ok: uploads go to {settings.UPLOAD_TARGET_DIR}")


@app.command()
def store(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    keep_name: bool = typer.Option(False, "--keep-name", help="Keep the file's own name"),
):
    """Store a local file into the upload directory and print the stored name."""
    from server.app.config import settings, validate_target_dir
    from server.app.errors import ConfigError, StoreError
    from server.app.services.naming import split_extension
    from server.app.services.storage import KeepName, RandomName
    from server.app.services.storage import store as store_bytes

    _setup_logging(settings.LOG_LEVEL)
    try:
        target = validate_target_dir(settings.UPLOAD_TARGET_DIR)
    except ConfigError as e:
        typer.echo(f"config error: {e}", err=True)
        raise typer.Exit(code=2)

    try:
        ext = split_extension(path.name)
        naming = (
            KeepName(path.name)
            if keep_name
            else RandomName(settings.UPLOAD_FILENAME_LENGTH, ext)
        )
        name = store_bytes(
            target,
            path.read_bytes(),
            naming,
            retry_limit=settings.UPLOAD_RETRY_LIMIT,
        )
    except StoreError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1 if e.client_error else 2)

    typer.echo(name)


if __name__ == "__main__":
    app()
