"""Shared utilities: locking, safe TOML persistence, files, archives, execution."""

from ._archive import resolve_entry_path, unzip
from ._exec import (
    DEFAULT_TIMEOUT_MS,
    CommandConfig,
    CommandResult,
    run_command,
    truncate_output,
)
from ._files import append_file, delete_file, get_file, write_file
from ._lock import file_lock, lock_path_for
from ._logging import create_logger, null_logger
from ._toml import (
    dump_toml,
    edit_toml_file,
    read_toml_file,
    safe_read_toml_file,
    safe_write_toml_file,
)

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "CommandConfig",
    "CommandResult",
    "append_file",
    "create_logger",
    "delete_file",
    "dump_toml",
    "edit_toml_file",
    "file_lock",
    "get_file",
    "lock_path_for",
    "null_logger",
    "read_toml_file",
    "resolve_entry_path",
    "run_command",
    "safe_read_toml_file",
    "safe_write_toml_file",
    "truncate_output",
    "unzip",
    "write_file",
]
