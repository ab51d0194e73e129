"""Form validation package."""

from expense_tracker.validation.validator import FormValidator, ValidationError

__all__ = ["FormValidator", "ValidationError"]
