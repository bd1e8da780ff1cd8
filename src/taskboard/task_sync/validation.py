"""Validation rules for task drafts."""

from .config import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH
from .models import TaskFormDraft


def validate_draft(draft: TaskFormDraft) -> dict[str, str]:
    """
    Validate a draft before submission.

    Args:
        draft: Draft to validate

    Returns:
        Mapping of field name to error message; empty when the draft is valid
    """
    errors: dict[str, str] = {}

    title = draft.title or ""
    if not title.strip():
        errors["title"] = "Title is required"
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be less than {TITLE_MAX_LENGTH} characters"

    if draft.description and len(draft.description) > DESCRIPTION_MAX_LENGTH:
        errors["description"] = (
            f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters"
        )

    if draft.due_date is None:
        errors["due_date"] = "Due date is required"

    return errors
