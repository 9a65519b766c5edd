"""Monthly income/expense reports."""

from finance_tracker.reports.monthly import MonthlyReportGenerator

__all__ = ["MonthlyReportGenerator"]
