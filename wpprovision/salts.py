"""WordPress authentication keys and salts.

Salts come from the WordPress.org secret-key API when it is reachable and are
generated locally otherwise, so `fetch_salts` always returns a full set.
"""
import re
import secrets
from collections import OrderedDict
from random import Random
from typing import Dict, Optional

import sh

from wpprovision.utils import command_exists, log_info, log_action, log_warning, retry

SALT_URL = "https://api.wordpress.org/secret-key/1.1/salt/"
MAX_RETRIES = 3
RETRY_DELAY = 5

SALT_LENGTH = 64
SALT_CHARS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!@#$%^&*()_+-={}[]|:;<>,.?~` "
SALT_BASES = ["AUTH", "SECURE_AUTH", "LOGGED_IN", "NONCE"]
SALT_NAMES = [f"{base}_{suffix}" for base in SALT_BASES for suffix in ("KEY", "SALT")]

DEFINE_RE = re.compile(r"define\(\s*'([A-Z_]+)'\s*,\s*'(.*?)'\s*\);")


class TransportUnavailable(RuntimeError):
    """Neither curl nor wget is installed."""


class TransportFailure(RuntimeError):
    """The download failed or returned an empty body."""


def download_salts(url: str = SALT_URL) -> str:
    """Download the salt block once with curl, or wget when curl is missing."""
    try:
        if command_exists('curl'):
            body = str(sh.curl("-s", "-f", url, _decode_errors="replace"))
        elif command_exists('wget'):
            body = str(sh.wget("-qO", "-", url, _decode_errors="replace"))
        else:
            raise TransportUnavailable("Neither curl nor wget is available")
    except sh.ErrorReturnCode as e:
        raise TransportFailure(f"download exited with status {e.exit_code}") from e
    except UnicodeDecodeError as e:
        raise TransportFailure("response is not valid UTF-8") from e

    if not body.strip():
        raise TransportFailure("empty response")
    return body


def generate_salt_values(rng: Optional[Random] = None) -> Dict[str, str]:
    """Generate one random value per salt name."""
    rng = rng or secrets.SystemRandom()
    values = OrderedDict()
    for name in SALT_NAMES:
        values[name] = "".join(rng.choice(SALT_CHARS) for _ in range(SALT_LENGTH))
    return values


def format_salts(values: Dict[str, str]) -> str:
    """Render salt values as one define() statement per line."""
    return "\n".join(f"define('{name}', '{value}');" for name, value in values.items()) + "\n"


def parse_salts(text: str) -> Dict[str, str]:
    """Extract the salt define() statements from a block of PHP."""
    return OrderedDict(
        (name, value) for name, value in DEFINE_RE.findall(text) if name in SALT_NAMES
    )


def generate_fallback_salts(rng: Optional[Random] = None) -> str:
    """Generate the full salt block locally.

    Pass a seeded `random.Random` as `rng` to get reproducible output.
    """
    return format_salts(generate_salt_values(rng))


def fetch_salts(
    url: str = SALT_URL,
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY,
    rng: Optional[Random] = None,
) -> str:
    """Fetch the salt block, falling back to local generation. Never raises."""
    log_info("Fetching WordPress salts...")

    try:
        salts = retry(
            lambda: download_salts(url),
            attempts=max_retries,
            delay=retry_delay,
            retry_on=(TransportFailure,),
        )
    except TransportUnavailable as e:
        log_action(f"{e}. Skipping remote fetch.")
        salts = None
    else:
        if salts is None:
            log_action(f"Failed to fetch WordPress salts after {max_retries} attempts")

    if salts is None:
        salts = generate_fallback_salts(rng)
        log_action("Generated fallback salts")
        return salts

    log_action("Successfully fetched WordPress salts")
    # The remote block is used as-is; only report if it looks incomplete.
    missing = [name for name in SALT_NAMES if name not in parse_salts(salts)]
    if missing:
        log_warning(f"Salt response is missing {', '.join(missing)}; using it unchanged")
    return salts
