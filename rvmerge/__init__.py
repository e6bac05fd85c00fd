"""Merge multiple RVTools Excel exports into one normalized workbook."""

__version__ = "0.1.0"
