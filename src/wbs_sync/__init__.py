"""wbs-sync: push work-breakdown task fields from a spreadsheet export to Teambition."""

__version__ = "0.1.0"
