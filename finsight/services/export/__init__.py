"""Export services package."""

from finsight.services.export.csv_export import CSV_HEADER, export_transactions_csv

__all__ = ["CSV_HEADER", "export_transactions_csv"]
