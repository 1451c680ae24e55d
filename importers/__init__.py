"""Importer package housing the spreadsheet order import pipeline."""

from .order_importer import GroupOutcome, ImportReport, OrderImporter

__all__ = ["GroupOutcome", "ImportReport", "OrderImporter"]
