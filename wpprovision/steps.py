"""Provisioning workflow steps."""
from enum import Enum
from pathlib import Path
from typing import Union

from wpprovision.config import write_config
from wpprovision.salts import fetch_salts
from wpprovision.settings import (
    CACHE_DIR,
    CONFIG_FILENAME,
    DEFAULT_PLUGINS,
    DEFAULT_THEMES,
    MEDIA_OPTIONS,
    PERMALINK_STRUCTURE,
    PLUGINS,
    Settings,
)
from wpprovision.utils import log_action, log_debug, log_info
from wpprovision import wordpress


class Stage(Enum):
    UNPROVISIONED = "unprovisioned"
    CORE_DOWNLOADED = "core-downloaded"
    CONFIGURED = "configured"
    SECURED = "secured"
    DONE = "done"
    SKIPPED = "skipped"


def is_provisioned(docroot: Union[str, Path]) -> bool:
    """An existing wp-config.php marks the site as already provisioned."""
    return (Path(docroot) / CONFIG_FILENAME).is_file()


def install_core(settings: Settings, dry_run: bool = False) -> None:
    """Install WP-CLI and download WordPress core."""
    log_info("Installing WordPress core files...")
    wordpress.install_wp_cli(dry_run=dry_run)
    wordpress.download_core(settings.docroot, settings.wordpress_version, dry_run=dry_run)
    wordpress.set_ownership(settings.docroot, dry_run=dry_run)


def configure_site(settings: Settings, dry_run: bool = False) -> None:
    """Write wp-config.php, install the site and set up plugins and options."""
    log_info("Configuring WordPress...")

    if dry_run:
        log_action(f"[DRY RUN] Would fetch salts and write {settings.config_path}")
    else:
        salts = fetch_salts()
        write_config(settings, salts, tls_enabled=settings.tls_enabled)

    docroot = settings.docroot
    wordpress.install_site(settings, dry_run=dry_run)
    wordpress.update_admin_password(settings, dry_run=dry_run)
    wordpress.delete_plugins(docroot, DEFAULT_PLUGINS, dry_run=dry_run)
    wordpress.delete_themes(docroot, DEFAULT_THEMES, dry_run=dry_run)
    wordpress.set_permalink_structure(docroot, PERMALINK_STRUCTURE, dry_run=dry_run)
    wordpress.update_media_options(docroot, MEDIA_OPTIONS, dry_run=dry_run)
    wordpress.install_plugins(docroot, PLUGINS, dry_run=dry_run)
    wordpress.copy_object_cache(docroot, dry_run=dry_run)
    wordpress.write_credentials(settings, dry_run=dry_run)


def secure_site(settings: Settings, dry_run: bool = False) -> None:
    """Warm up TLS through the reverse proxy.

    The SSL directives themselves are already part of wp-config.php.
    """
    log_info("Securing WordPress...")
    if not settings.tls_enabled:
        log_info("TLS disabled. Skipping warm-up request.")
        return
    wordpress.warm_up_tls(settings, dry_run=dry_run)


def cleanup(settings: Settings, dry_run: bool = False) -> None:
    """Fix ownership and permissions, then clear the cache."""
    log_info("Cleaning up...")
    wordpress.normalize_permissions(settings.docroot, dry_run=dry_run)
    wordpress.clear_cache(CACHE_DIR, dry_run=dry_run)


def provision_site(settings: Settings, dry_run: bool = False) -> Stage:
    """Main provisioning workflow. Runs every phase once, or nothing at all."""
    if is_provisioned(settings.docroot):
        log_info("WordPress already seems to be installed.")
        return Stage.SKIPPED

    phases = (
        (install_core, Stage.CORE_DOWNLOADED),
        (configure_site, Stage.CONFIGURED),
        (secure_site, Stage.SECURED),
        (cleanup, Stage.DONE),
    )

    stage = Stage.UNPROVISIONED
    for phase, next_stage in phases:
        phase(settings, dry_run=dry_run)
        stage = next_stage
        log_debug(f"Reached stage: {stage.value}")

    return stage
