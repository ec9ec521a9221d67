"""Small helpers shared across skyglow modules."""
from . import config


def vprint(text, level=0):
    """Print text if the configured verbosity is above ``level``.

    Parameters
    ----------
    text : str
        Text to print.
    level : int, optional
        Minimum verbosity (exclusive) needed for the text to show,
        by default 0. ``verbose = true`` in settings counts as 1.
    """
    if int(config.settings.get("verbose", 0) or 0) > level:
        print(text)
