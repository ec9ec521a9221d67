"""Configuration management for skyglow.

This module handles loading and managing configuration settings using
Dynaconf. Settings are loaded from multiple locations in order of
increasing priority:

1. Global settings (/etc/skyglow/)
2. User settings (~/.config/skyglow/)
3. Current directory settings (./)
4. Environment variable specified file (SKYGLOW_SETTINGS_FILE_FOR_DYNACONF)

Every key can also be set from the environment with the ``SKYGLOW_``
prefix, e.g. ``SKYGLOW_MAX_ZOOM=6``.

Attributes
----------
USER_DIR : pathlib.Path
    Path to user configuration directory.
GLOB_DIR : pathlib.Path
    Path to global configuration directory.
CURR_DIR : pathlib.Path
    Path to current working directory.
DEFAULTS : dict
    Default value of every pyramid key (source has none).
settings : Dynaconf
    The Dynaconf settings object with loaded configuration.
"""
import os
import pathlib

from dynaconf import Dynaconf, Validator

USER_DIR = pathlib.Path("~/.config/skyglow").expanduser()
GLOB_DIR = pathlib.Path("/etc/skyglow/")
CURR_DIR = pathlib.Path("./").absolute()
settings_files = [
    GLOB_DIR / "settings.toml",
    GLOB_DIR / ".secrets.toml",
    USER_DIR / "settings.toml",
    USER_DIR / ".secrets.toml",
    CURR_DIR / "settings.toml",
    CURR_DIR / ".secrets.toml"
    ]
extra_file = os.getenv("SKYGLOW_SETTINGS_FILE_FOR_DYNACONF")
if extra_file:
    settings_files.append(pathlib.Path(extra_file).absolute())

# Pyramid defaults, used when no settings file or SKYGLOW_ variable sets a key
DEFAULTS = {
    "tile_dir": "tiles",
    "min_zoom": 0,
    "max_zoom": 8,
    "skip_existing": False,
    "skip_empty": True,
    "workers": 1,
    "verbose": 0,
}

settings = Dynaconf(
    merge_enabled=True,
    envvar_prefix="SKYGLOW",
    settings_files=settings_files,
    environments=True,
    load_dotenv=True,
    validators=[Validator(key, default=value) for key, value in DEFAULTS.items()],
)


def change_env(new_env):
    """Change the active Dynaconf environment.

    Parameters
    ----------
    new_env : str
        The environment name to switch to (e.g., 'development', 'production').
    """
    settings.setenv(new_env)
    settings.reload()
    settings.validators.validate()
