"""SQL Workbench - multi-tab SQL client for a REST query backend."""

from sql_workbench.__about__ import __version__

__all__ = ["__version__"]
