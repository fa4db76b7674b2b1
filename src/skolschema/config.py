"""Where skolschema keeps its files, and how settings are resolved.

Directories follow the XDG Base Directory layout on Linux and the BSDs and
live under ``~/.skolschema/`` elsewhere:

=========  ==================================  ==========================
Purpose    XDG                                 Fallback
=========  ==================================  ==========================
config     ``$XDG_CONFIG_HOME/skolschema``     ``~/.skolschema``
cache      ``$XDG_CACHE_HOME/skolschema``      ``~/.skolschema/cache``
data       ``$XDG_DATA_HOME/skolschema``       ``~/.skolschema/logs``
=========  ==================================  ==========================

The only persistent setting file is ``config.json`` in the config directory,
holding a :class:`~skolschema.models.GlobalConfig`. It is written atomically
(:func:`_atomic_write`). :func:`resolve_config` layers environment variables
and CLI flags on top of it.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from skolschema.exceptions import ConfigError
from skolschema.models import GlobalConfig

_APP_NAME = "skolschema"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "SKOLSCHEMA_BASE_URL"
ENV_NO_CACHE = "SKOLSCHEMA_NO_CACHE"

_TRUTHY = {"1", "true", "yes", "on"}


# --- Directories ---


def _is_xdg_platform() -> bool:
    """True on Linux and the BSDs."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(env_var: str, xdg_default: tuple[str, ...], fallback: tuple[str, ...]) -> Path:
    """Resolve and create one of the application directories."""
    if _is_xdg_platform():
        base = os.environ.get(env_var, "")
        path = (Path(base) if base else Path.home().joinpath(*xdg_default)) / _APP_NAME
    else:
        path = Path.home().joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    return _app_dir("XDG_CONFIG_HOME", (".config",), ())


def get_cache_dir() -> Path:
    """Directory of the response cache. Safe to delete at any time."""
    return _app_dir("XDG_CACHE_HOME", (".cache",), ("cache",))


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("XDG_DATA_HOME", (".local", "share"), ("logs",))


# --- Atomic writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a fsynced temp file in the same directory.

    The temp file is removed if anything fails before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.unlink(tmp.name)
        except OSError:
            pass
        raise


# --- config.json ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read ``config.json``, or return defaults when it does not exist.

    Raises:
        ConfigError: If the file is not valid JSON or does not validate.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    data = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    _atomic_write(_global_config_path(), data)


# --- Precedence ---


def resolve_config(
    cli_no_cache: bool = False,
    cli_base_url: Optional[str] = None,
) -> GlobalConfig:
    """Return the effective configuration.

    Highest precedence first: CLI arguments, ``SKOLSCHEMA_BASE_URL`` and
    ``SKOLSCHEMA_NO_CACHE``, ``config.json``, built-in defaults. The cache
    switches can only turn caching off.
    """
    config = load_global_config()

    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        config.request.base_url = base_url

    env_no_cache = os.environ.get(ENV_NO_CACHE, "").strip().lower() in _TRUTHY
    if cli_no_cache or env_no_cache:
        config.cache.enabled = False

    return config
