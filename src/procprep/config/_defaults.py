"""Default configuration values.

This module defines the built-in default settings that are used when no
other configuration sources provide values.
"""

from typing import Any

DEFAULT_TOOLCHAINS: dict[str, list[str]] = {
    "go": ["go", "build", "-o", "{output}", "{source}/."],
}

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "sys_folder": "",
    "build_timeout_ms": 300000,
    "bundle_path": "/usr/local/bin:/usr/bin:/bin",
    "toolchains": DEFAULT_TOOLCHAINS,
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
