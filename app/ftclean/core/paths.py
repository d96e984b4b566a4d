"""Where ftclean keeps its files.

Connection settings and the optional theme override live under the XDG
config home, the deletion audit trail under the XDG state home:

- ``$XDG_CONFIG_HOME/ftclean/`` (default ``~/.config/ftclean/``)
- ``$XDG_STATE_HOME/ftclean/`` (default ``~/.local/state/ftclean/``)
"""

import os
from pathlib import Path

APP_NAME = "ftclean"

CONFIG_FILENAME = "config.toml"
THEME_FILENAME = "theme.toml"
HISTORY_FILENAME = "history.jsonl"


def _app_home(env_var: str, fallback: str) -> Path:
    # An empty variable counts as unset.
    base = os.environ.get(env_var) or str(Path.home() / fallback)
    return Path(base) / APP_NAME


def get_config_dir() -> Path:
    """Return the directory holding ``config.toml`` and ``theme.toml``."""
    return _app_home("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Return the directory holding the deletion history."""
    return _app_home("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def get_theme_path() -> Path:
    return get_config_dir() / THEME_FILENAME


def get_history_path() -> Path:
    return get_state_dir() / HISTORY_FILENAME


def ensure_state_dir() -> Path:
    """Create the state directory on first use.

    Returns:
        The state directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    state_dir = get_state_dir()
    try:
        state_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create state directory {state_dir}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create state directory {state_dir}: {e}"
        raise RuntimeError(msg) from e
    return state_dir
