"""
Input validation for generation and enhancement requests.

Validation happens before any network call is made.
"""

from typing import Any

from pixelprompt.catalog import MAX_BATCH_SIZE, MAX_PROMPT_LENGTH, MIN_BATCH_SIZE, size_values


class ValidationError(ValueError):
    """Malformed or out-of-range caller input."""
    pass


def validate_prompt(prompt: Any, label: str = "Prompt") -> str:
    if not prompt or not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError(f"{label} is required and must be a non-empty string")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(f"{label} must be {MAX_PROMPT_LENGTH} characters or less")
    return prompt


def validate_size(size: Any) -> str:
    valid = size_values()
    if size not in valid:
        raise ValidationError(f"Invalid size. Must be one of: {', '.join(valid)}")
    return size


def validate_batch_count(batch_count: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(batch_count, bool) or not isinstance(batch_count, int):
        raise ValidationError(f"Batch count must be between {MIN_BATCH_SIZE} and {MAX_BATCH_SIZE}")
    if batch_count < MIN_BATCH_SIZE or batch_count > MAX_BATCH_SIZE:
        raise ValidationError(f"Batch count must be between {MIN_BATCH_SIZE} and {MAX_BATCH_SIZE}")
    return batch_count


def validate_generation_request(prompt: Any, size: Any, batch_count: Any) -> None:
    """Raise ValidationError if a generation request cannot be served."""
    validate_prompt(prompt)
    validate_size(size)
    validate_batch_count(batch_count)


def validate_enhancement_request(original_prompt: Any) -> None:
    validate_prompt(original_prompt, label="Original prompt")
