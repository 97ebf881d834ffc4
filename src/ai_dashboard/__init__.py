"""AI Sales Dashboard: spreadsheet upload, auto-generated charts and an AI analyst chat."""

__version__ = "1.0.0"
