"""Version information for the pool sniper."""

__version__ = "0.1.0"


def get_version() -> str:
    """Get the current version string."""
    return __version__
