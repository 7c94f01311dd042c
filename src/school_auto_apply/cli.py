"""Command-line interface for School Auto-Apply."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from school_auto_apply.config import settings

app = typer.Typer(
    name="school-auto-apply",
    help="School Auto-Apply - fill and submit school application forms in a browser",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, help="Host to bind to"),
    port: int = typer.Option(settings.api_port, help="Port to bind to"),
    reload: bool = typer.Option(settings.reload, help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    console.print(f"🚀 Starting School Auto-Apply on {host}:{port}")
    uvicorn.run(
        "school_auto_apply.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@app.command()
def config() -> None:
    """Show current configuration."""
    table = Table(title="School Auto-Apply Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    # Tokens and proxy credentials are never printed
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Browser Headless", str(settings.browser_headless))
    table.add_row("Browser Locale", settings.browser_locale)
    table.add_row("Proxy Server", settings.browser_proxy_server or "-")
    table.add_row("Navigation Timeout (ms)", str(settings.navigation_timeout_ms))
    table.add_row("Network Idle Timeout (ms)", str(settings.network_idle_timeout_ms))
    table.add_row("Submit Timeout (ms)", str(settings.submit_timeout_ms))
    table.add_row("Artifact Directory", settings.artifact_dir)
    table.add_row("Data File", settings.data_file or "-")
    table.add_row("Enabled Scripts", ", ".join(settings.enabled_scripts) if settings.enabled_scripts else "all")
    table.add_row("API Tokens", str(len(settings.api_tokens)))

    console.print(table)


@app.command()
def scripts() -> None:
    """List registered automation scripts."""
    from school_auto_apply.registry import build_default_registry

    registry = build_default_registry(settings.enabled_scripts)

    table = Table(title="Registered Automation Scripts")
    table.add_column("School ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Login")
    table.add_column("Description")

    for entry in registry.describe():
        table.add_row(
            entry["id"],
            entry["name"],
            "✅" if entry["supports_login"] else "-",
            entry["description"] or "",
        )

    console.print(table)


@app.command()
def run(
    school: Optional[str] = typer.Option(None, "--school", "-s", help="School id to run"),
    template: Optional[str] = typer.Option(None, "--template", "-t", help="Stored template id"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User id whose answers are used"),
    data_file: Optional[Path] = typer.Option(None, "--data-file", help="Repository JSON document"),
    payload_file: Optional[Path] = typer.Option(None, "--payload", help="Run payload JSON file"),
    headless: bool = typer.Option(settings.browser_headless, help="Run the browser headless"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Run one automation, from a stored template or from a payload file."""
    from school_auto_apply.engine.models import RunPayload
    from school_auto_apply.engine.errors import TemplateNotFoundError
    from school_auto_apply.repository import JsonFileRepository, assemble_run_payload
    from school_auto_apply.service import AutoApplyService
    from school_auto_apply.utils.logging import configure_logging

    configure_logging(log_level)
    settings.browser_headless = headless

    if payload_file is not None:
        payload = RunPayload.model_validate(json.loads(payload_file.read_text(encoding="utf-8")))
    else:
        source = data_file or (Path(settings.data_file) if settings.data_file else None)
        if not (school and template and user) or source is None:
            console.print("❌ Provide --payload, or --school, --template, --user and a data file")
            raise typer.Exit(code=2)
        try:
            payload = asyncio.run(
                assemble_run_payload(JsonFileRepository(source), school, template, user)
            )
        except TemplateNotFoundError as e:
            console.print(f"❌ {e}")
            raise typer.Exit(code=1)

    console.print(f"🔍 Running {payload.school_id} (run {payload.run_id}, {len(payload.template.fields)} fields)")
    result = asyncio.run(AutoApplyService().run(payload))

    if result.success:
        console.print(f"✅ {result.message}")
    else:
        console.print(f"❌ {result.message}")
        if result.artifacts:
            console.print(f"   screenshot: {result.artifacts.screenshot_path or '-'}")
            console.print(f"   html: {result.artifacts.raw_html_path or '-'}")
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from school_auto_apply import __version__
    console.print(f"School Auto-Apply v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
