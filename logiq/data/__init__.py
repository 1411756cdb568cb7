"""Static quiz content."""

from .questions import CATEGORY_LABELS, CATEGORY_ORDER, QUESTION_BANK, get_question

__all__ = ["CATEGORY_LABELS", "CATEGORY_ORDER", "QUESTION_BANK", "get_question"]
