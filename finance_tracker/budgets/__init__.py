"""Budget creation and spend evaluation."""

from finance_tracker.budgets.evaluator import BudgetEvaluator

__all__ = ["BudgetEvaluator"]
