"""Site settings and fixed provisioning constants.

Everything environment-dependent is read once into a `Settings` record by
`Settings.from_env` and passed explicitly to the steps that need it.
"""
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

WP_CLI_URL = "https://raw.githubusercontent.com/wp-cli/builds/gh-pages/phar/wp-cli.phar"
WP_CLI_PATH = "/usr/bin/wp"

SERVICE_USER = "www-data"
SERVICE_GROUP = "www-data"
DIR_PERMS = 0o755
FILE_PERMS = 0o644
CACHE_DIR = "/var/cache"

CONFIG_FILENAME = "wp-config.php"

DEFAULT_PLUGINS = ["akismet", "hello"]
DEFAULT_THEMES = ["twentytwentythree", "twentytwentyfour"]
PLUGINS = ["amp", "antispam-bee", "nginx-helper", "wp-mail-smtp", "redis-cache"]
PERMALINK_STRUCTURE = "/%postname%/"
MEDIA_OPTIONS = {
    "thumbnail_crop": "0",
    "thumbnail_size_w": "640",
    "thumbnail_size_h": "360",
    "medium_size_w": "1280",
    "medium_size_h": "720",
    "large_size_w": "1920",
    "large_size_h": "1080",
}
OBJECT_CACHE_SOURCE = "wp-content/plugins/redis-cache/includes/object-cache.php"

REQUIRED_VARIABLES = {
    "docroot": "APP_DOCROOT",
    "db_name": "WORDPRESS_DB_NAME",
    "db_user": "WORDPRESS_DB_USER",
    "db_password": "WORDPRESS_DB_PASSWORD",
    "db_host": "WORDPRESS_DB_HOST",
    "server_name": "NGINX_SERVER_NAME",
    "admin_user": "WORDPRESS_ADMIN",
    "admin_password": "WORDPRESS_ADMIN_PASSWORD",
    "admin_email": "WORDPRESS_ADMIN_EMAIL",
}

OPTIONAL_VARIABLES = {
    "wordpress_version": ("WORDPRESS_VERSION", "latest"),
    "redis_host": ("REDIS_UPSTREAM_HOST", "redis"),
    "redis_port": ("REDIS_UPSTREAM_PORT", "6379"),
    "proxy_host": ("NGINX_PROXY_HOST", "nginx"),
    "proxy_address": ("NGINX_PROXY_ADDRESS", "172.19.0.6"),
    "credentials_file": ("WORDPRESS_CREDENTIALS_FILE", "/home/creds.txt"),
}


class MissingSettingsError(ValueError):
    """Raised when required environment variables are unset or empty."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required environment variables: {', '.join(self.missing)}")


@dataclass(frozen=True)
class Settings:
    docroot: str
    db_name: str
    db_user: str
    db_password: str
    db_host: str
    server_name: str
    admin_user: str
    admin_password: str
    admin_email: str
    wordpress_version: str = "latest"
    redis_host: str = "redis"
    redis_port: str = "6379"
    proxy_host: str = "nginx"
    proxy_address: str = "172.19.0.6"
    credentials_file: str = "/home/creds.txt"
    tls_enabled: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables. Empty values count as unset."""
        if environ is None:
            environ = os.environ

        values = {}
        missing = []
        for field, variable in REQUIRED_VARIABLES.items():
            value = environ.get(variable, "")
            if not value:
                missing.append(variable)
            values[field] = value
        if missing:
            raise MissingSettingsError(missing)

        for field, (variable, default) in OPTIONAL_VARIABLES.items():
            values[field] = environ.get(variable) or default

        return cls(**values)

    @property
    def docroot_path(self) -> Path:
        return Path(self.docroot)

    @property
    def config_path(self) -> Path:
        return self.docroot_path / CONFIG_FILENAME

    @property
    def site_url(self) -> str:
        return f"https://{self.server_name}"

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **changes)
