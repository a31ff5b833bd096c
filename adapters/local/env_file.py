"""
Env File — KEY=VALUE settings for local runs.

Shared by the local identity provider and `cms-admin --env-file`. Values
already present in the process environment always win over the file.
"""

import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger("cms.local.env")

_QUOTES = ("'", '"')


def read_env_file(path: Union[str, Path]) -> dict[str, str]:
    """
    Parse a .env file. A missing file reads as empty.

    Blank lines, `#` comments and lines without `=` are ignored. An
    `export ` prefix is allowed, and one pair of matching quotes around a
    value is removed.
    """
    path = Path(path)
    if not path.is_file():
        return {}

    settings = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        name, value = line.split("=", 1)
        name = name.strip()
        if name.startswith("export "):
            name = name[len("export "):].strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
            value = value[1:-1]
        if name:
            settings[name] = value
    return settings


def load_env_file(path: Union[str, Path]) -> dict[str, str]:
    """Export a .env file into os.environ; returns only the names it set."""
    applied = {}
    for name, value in read_env_file(path).items():
        if name not in os.environ:
            os.environ[name] = value
            applied[name] = value
    if applied:
        logger.debug(f"[env:{path}] loaded {', '.join(sorted(applied))}")
    return applied
