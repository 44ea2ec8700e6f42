"""ghupdater - self-update an application install directory from GitHub Releases."""

__version__ = "0.1.0"
