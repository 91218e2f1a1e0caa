"""Output formatters for SQL Workbench."""

from sql_workbench.formatters.base import Formatter, FormatterRegistry, registry
from sql_workbench.formatters.csv import CSVFormatter
from sql_workbench.formatters.json import JSONFormatter
from sql_workbench.formatters.table import TableFormatter
