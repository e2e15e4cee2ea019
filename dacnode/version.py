"""Build and version information for the node."""

from __future__ import annotations

import platform
import sys
from typing import TextIO

VERSION = "v0.1.0"
GIT_REV = "undefined"
GIT_BRANCH = "undefined"
BUILD_DATE = "Fri, 17 Jun 1988 01:58:00 +0200"

_LABEL_WIDTH = 14


def get_version_info() -> str:
    """Return the version information as a block of aligned lines."""
    fields = (
        ("Version:", VERSION),
        ("Git revision:", GIT_REV),
        ("Git branch:", GIT_BRANCH),
        ("Python:", platform.python_version()),
        ("Built:", BUILD_DATE),
        ("OS/Arch:", f"{sys.platform}/{platform.machine()}"),
    )
    return "".join(f"{label:<{_LABEL_WIDTH}}{value}\n" for label, value in fields)


def print_version(stream: TextIO | None = None) -> None:
    """Write the version information to ``stream`` (standard output by default)."""
    (stream if stream is not None else sys.stdout).write(get_version_info())