"""Rendering of wp-config.php."""
import re
from pathlib import Path

from wpprovision.settings import Settings
from wpprovision.utils import log_action, log_info

TEMPLATE_PATH = Path(__file__).parent / "configs" / "wp-config.php"

TLS_DIRECTIVES = """define('FORCE_SSL_ADMIN', true);
if (isset($_SERVER['HTTP_X_FORWARDED_PROTO']) && $_SERVER['HTTP_X_FORWARDED_PROTO'] == 'https') {
    $_SERVER['HTTPS'] = 'on';
}

"""


def php_quote(value: str) -> str:
    """Escape a value for use inside a single-quoted PHP string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def render_config(settings: Settings, salts: str, tls_enabled: bool = True) -> str:
    """Render wp-config.php for the given settings and salt block."""
    with open(TEMPLATE_PATH, 'r') as f:
        template = f.read()

    values = {
        "DB_NAME": php_quote(settings.db_name),
        "DB_USER": php_quote(settings.db_user),
        "DB_PASSWORD": php_quote(settings.db_password),
        "DB_HOST": php_quote(settings.db_host),
        "REDIS_HOST": php_quote(settings.redis_host or "redis"),
        "REDIS_PORT": settings.redis_port or "6379",
        "SALTS": salts.strip(),
        "TLS_DIRECTIVES": TLS_DIRECTIVES if tls_enabled else "",
    }

    # Single pass so substituted values are never rescanned for placeholders.
    pattern = re.compile(r"\b(" + "|".join(values) + r")_PLACEHOLDER")
    return pattern.sub(lambda m: values[m.group(1)], template)


def write_config(settings: Settings, salts: str, tls_enabled: bool = True) -> Path:
    """Write wp-config.php into the docroot, replacing any existing file."""
    config_path = settings.config_path
    log_info(f"Writing {config_path}")

    content = render_config(settings, salts, tls_enabled=tls_enabled)
    with open(config_path, 'w') as f:
        f.write(content)

    if tls_enabled:
        log_action("Included FORCE_SSL_ADMIN and X-Forwarded-Proto handling")
    return config_path
