"""Centralized naming conventions for vApps.

vApp names must be unique per build invocation so concurrent builds from
different users/hosts never collide inside the same VDC.
"""

import getpass
import secrets
import socket
from datetime import date

from vapp_builder.config import settings

# Hex characters in the random suffix
SUFFIX_LENGTH = 8


def local_user() -> str:
    return getpass.getuser()


def local_hostname() -> str:
    return socket.gethostname().lower()


def random_suffix() -> str:
    return secrets.token_hex(SUFFIX_LENGTH // 2)


def vapp_name(prefix: str | None = None) -> str:
    """Generate a unique vApp name.

    Format: {prefix}-{user}-{hostname}-{8 hex chars}
    """
    prefix = prefix or settings.default_vapp_prefix
    return f"{prefix}-{local_user()}-{local_hostname()}-{random_suffix()}"


def vapp_description(today: date | None = None) -> str:
    """Generate the vApp description shown in the cloud portal."""
    today = today or date.today()
    return (
        f"vApp created by {local_user()} running on {local_hostname()} "
        f"using vapp_builder on {today.strftime('%B %d, %Y')}"
    )
