"""sheet-metrics: test-tracking spreadsheet exports to dashboard metrics."""

__version__ = "0.1.0"
