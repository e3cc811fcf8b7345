"""
Plugin harness for grading submitted work.

A plugin unpacks one submission archive into a private workspace, checks a set
of named criteria against it and prints a single XML report.
"""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("graderkit")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
