"""WP-CLI and filesystem operations used while provisioning a site."""
import os
import pwd
import shutil
import stat
from pathlib import Path
from typing import Dict, List, Union

import sh

from wpprovision.settings import (
    CACHE_DIR,
    DIR_PERMS,
    FILE_PERMS,
    OBJECT_CACHE_SOURCE,
    SERVICE_GROUP,
    SERVICE_USER,
    WP_CLI_PATH,
    WP_CLI_URL,
    Settings,
)
from wpprovision.utils import log_action, log_debug, log_info


def wp(docroot: Union[str, Path], *args: str) -> str:
    """Run a WP-CLI command against the site in docroot."""
    wp_cli = sh.Command(WP_CLI_PATH)
    output = str(wp_cli("--allow-root", f"--path={docroot}", *args))
    if output.strip():
        log_debug(output.rstrip())
    return output


def check_wp_cli() -> bool:
    """Check if WP-CLI is installed."""
    return Path(WP_CLI_PATH).exists()


def install_wp_cli(dry_run: bool = False) -> None:
    """Install the WP-CLI phar as an executable."""
    if check_wp_cli():
        log_info("WP-CLI is already installed.")
        return

    if dry_run:
        log_action(f"[DRY RUN] Would install WP-CLI to {WP_CLI_PATH}")
        return

    log_action(f"Installing WP-CLI to {WP_CLI_PATH}...")
    sh.curl("-fsSL", "-o", WP_CLI_PATH, WP_CLI_URL)
    sh.chmod("+x", WP_CLI_PATH)


def download_core(docroot: Union[str, Path], version: str, dry_run: bool = False) -> None:
    """Download the WordPress core files into docroot."""
    if dry_run:
        log_action(f"[DRY RUN] Would download WordPress {version} into {docroot}")
        return

    Path(docroot).mkdir(parents=True, exist_ok=True)
    log_action(f"Downloading WordPress {version}...")
    wp(docroot, "core", "download", f"--version={version}")


def set_ownership(docroot: Union[str, Path], dry_run: bool = False) -> None:
    """Hand the docroot to the web server account."""
    owner = f"{SERVICE_USER}:{SERVICE_GROUP}"
    if dry_run:
        log_action(f"[DRY RUN] Would chown {docroot} to {owner}")
        return

    log_action(f"Setting ownership of {docroot} to {owner}...")
    sh.chown("-R", owner, str(docroot))


def install_site(settings: Settings, dry_run: bool = False) -> None:
    """Run `wp core install` to create the admin account and site."""
    if dry_run:
        log_action(f"[DRY RUN] Would install WordPress at {settings.site_url}")
        return

    log_action(f"Installing WordPress core at {settings.site_url}...")
    wp(
        settings.docroot,
        "core", "install",
        f"--url={settings.site_url}",
        f"--title={settings.server_name}",
        f"--admin_user={settings.admin_user}",
        f"--admin_password={settings.admin_password}",
        f"--admin_email={settings.admin_email}",
    )


def update_admin_password(settings: Settings, dry_run: bool = False) -> None:
    """Reset the admin password explicitly."""
    if dry_run:
        log_action(f"[DRY RUN] Would reset password for {settings.admin_user}")
        return

    log_action(f"Setting password for {settings.admin_user}...")
    wp(settings.docroot, "user", "update", settings.admin_user, f"--user_pass={settings.admin_password}")


def delete_plugins(docroot: Union[str, Path], plugins: List[str], dry_run: bool = False) -> None:
    """Delete plugins bundled with WordPress."""
    if dry_run:
        log_action(f"[DRY RUN] Would delete plugins: {', '.join(plugins)}")
        return

    log_action(f"Deleting plugins: {', '.join(plugins)}...")
    wp(docroot, "plugin", "delete", *plugins)


def delete_themes(docroot: Union[str, Path], themes: List[str], dry_run: bool = False) -> None:
    """Delete themes bundled with WordPress."""
    if dry_run:
        log_action(f"[DRY RUN] Would delete themes: {', '.join(themes)}")
        return

    log_action(f"Deleting themes: {', '.join(themes)}...")
    wp(docroot, "theme", "delete", *themes)


def set_permalink_structure(docroot: Union[str, Path], structure: str, dry_run: bool = False) -> None:
    """Set the permalink structure and flush rewrite rules."""
    if dry_run:
        log_action(f"[DRY RUN] Would set permalink structure to {structure}")
        return

    log_action(f"Setting permalink structure to {structure}...")
    wp(docroot, "rewrite", "structure", structure, "--hard")


def update_media_options(docroot: Union[str, Path], options: Dict[str, str], dry_run: bool = False) -> None:
    """Set the image size options, then regenerate existing thumbnails."""
    if dry_run:
        log_action("[DRY RUN] Would update media settings and regenerate thumbnails")
        return

    log_action("Updating media settings...")
    for name, value in options.items():
        wp(docroot, "option", "update", name, str(value))
    wp(docroot, "media", "regenerate", "--yes")


def install_plugins(docroot: Union[str, Path], plugins: List[str], dry_run: bool = False) -> None:
    """Install and activate plugins from the WordPress.org directory."""
    if dry_run:
        log_action(f"[DRY RUN] Would install and activate plugins: {', '.join(plugins)}")
        return

    log_action(f"Installing and activating plugins: {', '.join(plugins)}...")
    wp(docroot, "plugin", "install", *plugins, "--activate")


def copy_object_cache(docroot: Union[str, Path], dry_run: bool = False) -> bool:
    """Copy the redis-cache drop-in into wp-content if the plugin ships one.

    Returns True if the file was (or would be) copied.
    """
    source = Path(docroot) / OBJECT_CACHE_SOURCE
    target = Path(docroot) / "wp-content" / "object-cache.php"

    if dry_run:
        log_action(f"[DRY RUN] Would copy {source} to {target} if present")
        return True

    if not source.is_file():
        log_info("object-cache.php not found. Skipping file copy.")
        return False

    log_action("Copying object-cache.php to wp-content...")
    shutil.copy(source, target)
    return True


def write_credentials(settings: Settings, dry_run: bool = False) -> None:
    """Print the admin credentials and save them to the credentials file."""
    if dry_run:
        log_action(f"[DRY RUN] Would write admin credentials to {settings.credentials_file}")
        return

    log_info("Installation is complete. Your credentials are listed below.")
    log_info(f"Username: {settings.admin_user}")
    log_info(f"Password: {settings.admin_password}")

    with open(settings.credentials_file, 'w') as f:
        f.write(f"Username: {settings.admin_user} | Password: {settings.admin_password}\n")


def warm_up_tls(settings: Settings, dry_run: bool = False) -> None:
    """Request the login page through the reverse proxy to open the first TLS handshake."""
    url = f"https://{settings.proxy_host}/wp-login.php"
    if dry_run:
        log_action(f"[DRY RUN] Would request {url}")
        return

    log_action(f"Requesting {url} via {settings.proxy_address}...")
    sh.curl("-v", "-k", "--resolve", f"{settings.proxy_host}:443:{settings.proxy_address}", url)


def normalize_permissions(docroot: Union[str, Path], dry_run: bool = False) -> None:
    """Give everything under docroot to the service account with 755/644 modes.

    Only entries that differ are touched.
    """
    if dry_run:
        log_action(f"[DRY RUN] Would normalize ownership and permissions under {docroot}")
        return

    log_action(f"Normalizing ownership and permissions under {docroot}...")
    for root, dirs, files in os.walk(docroot):
        _normalize_entry(root, DIR_PERMS)
        for name in files:
            _normalize_entry(os.path.join(root, name), FILE_PERMS)


def _normalize_entry(path: str, mode: int) -> None:
    info = os.lstat(path)
    if stat.S_ISLNK(info.st_mode):
        return
    if _owner_name(info.st_uid) != SERVICE_USER:
        shutil.chown(path, SERVICE_USER, SERVICE_GROUP)
    if stat.S_IMODE(info.st_mode) != mode:
        os.chmod(path, mode)


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def clear_cache(cache_dir: Union[str, Path] = CACHE_DIR, dry_run: bool = False) -> None:
    """Remove everything inside the cache directory, keeping the directory."""
    if dry_run:
        log_action(f"[DRY RUN] Would clear {cache_dir}")
        return

    cache_path = Path(cache_dir)
    if not cache_path.is_dir():
        log_info(f"{cache_dir} does not exist. Nothing to clear.")
        return

    log_action(f"Clearing {cache_dir}...")
    for entry in cache_path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
