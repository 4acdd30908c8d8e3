"""Input validation for CLI arguments."""
import sys
from typing import Optional


def validate_name(value: Optional[str], option: str) -> None:
    """
    Validate that a required name option is present and non-empty.

    Args:
        value: Option value
        option: Option flag shown in the error, e.g. '--project'

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not value or not value.strip():
        print(f"Error: {option} is required and cannot be empty", file=sys.stderr)
        sys.exit(2)
