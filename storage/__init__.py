"""Durable usage log."""

from .csv_log import HEADER, UsageLogWriter, format_row

__all__ = ["HEADER", "UsageLogWriter", "format_row"]
