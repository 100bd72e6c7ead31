"""CLI interface for the WordPress provisioning tool."""
import os
from typing import Optional

import sh
import typer

from . import settings as site_settings
from . import steps
from . import utils


def install(
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview changes without applying them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    docroot: Optional[str] = typer.Option(None, "--docroot", help="Override APP_DOCROOT"),
    no_tls: bool = typer.Option(False, "--no-tls", help="Leave SSL directives out of wp-config.php"),
):
    """WordPress provisioning tool: install and configure a site once, using settings from the environment."""
    utils.setup_logging(verbose)

    environ = dict(os.environ)
    if docroot:
        environ["APP_DOCROOT"] = docroot

    try:
        settings = site_settings.Settings.from_env(environ)
    except site_settings.MissingSettingsError as e:
        typer.echo(f"❗ {e}", err=True)
        raise typer.Exit(1)

    if no_tls:
        settings = settings.with_overrides(tls_enabled=False)

    # chown to the service account requires root
    if not dry_run and not utils.is_root():
        typer.echo("❗ Provisioning requires root. Run with sudo or use --dry-run")
        raise typer.Exit(1)

    try:
        stage = steps.provision_site(settings, dry_run=dry_run)
    except sh.ErrorReturnCode as e:
        typer.echo(f"❗ Command failed with status {e.exit_code}: {e.full_cmd}", err=True)
        raise typer.Exit(e.exit_code or 1)
    except OSError as e:
        typer.echo(f"❗ {e}", err=True)
        raise typer.Exit(1)

    if stage == steps.Stage.SKIPPED:
        typer.echo("✅ WordPress is already provisioned. Nothing to do.")
    else:
        typer.echo("✅ Provisioning complete!")


app = typer.Typer(
    name="wp-provision",
    help="Provisioning tool that installs and configures a WordPress site.",
    add_completion=False,
    invoke_without_command=True,
    callback=install,
)


if __name__ == "__main__":
    app()
