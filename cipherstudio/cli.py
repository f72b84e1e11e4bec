import click


@click.group()
def main() -> None:
    """CipherStudio - multi-language code workspace engine."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from CIPHER_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from CIPHER_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the engine HTTP server."""
    import uvicorn

    from cipherstudio.engine.settings import CipherSettings

    settings = CipherSettings()

    uvicorn.run(
        "cipherstudio.engine.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


@main.command()
def languages() -> None:
    """List the language catalog."""
    from cipherstudio.engine.templates import LANGUAGE_TEMPLATES

    for language_id, template in LANGUAGE_TEMPLATES.items():
        flags = []
        if template.live:
            flags.append("live")
        if not template.editable:
            flags.append("read-only")
        suffix = f" ({', '.join(flags)})" if flags else ""
        click.echo(f"{language_id:<12} {template.entry_path}{suffix}")


@main.command()
@click.argument("owner_id")
def projects(owner_id: str) -> None:
    """List the stored projects of OWNER_ID, newest first."""
    import asyncio

    from cipherstudio.engine.log import setup_logging
    from cipherstudio.engine.managers.persistence import PersistenceGateway
    from cipherstudio.engine.settings import CipherSettings
    from cipherstudio.engine.store.base import PersistenceUnavailableError
    from cipherstudio.engine.studio import create_document_store

    settings = CipherSettings()
    setup_logging(settings.log_level)

    gateway = PersistenceGateway(create_document_store(settings), namespace=settings.app_namespace)
    try:
        found = asyncio.run(gateway.list_projects(owner_id))
    except PersistenceUnavailableError:
        raise click.ClickException("No document store configured (CIPHER_DOCUMENT_STORE).") from None

    if not found:
        click.echo("No projects.")
        return
    for project in found:
        updated = project.updated_at.isoformat() if project.updated_at else "-"
        click.echo(f"{project.id}  {project.display_name}  {project.language_id or '-'}  {updated}")
