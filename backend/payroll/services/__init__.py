"""Domain services for claim screening, submission, and review."""
