"""Output formatters for typed queries."""

from pgquerygen.formatters.base import Formatter, FormatterRegistry, registry
from pgquerygen.formatters.csv import CSVFormatter
from pgquerygen.formatters.json import JSONFormatter
from pgquerygen.formatters.table import TableFormatter
