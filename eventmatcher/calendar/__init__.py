"""Calendar math for eventmatcher: date normalization and recurrence expansion."""
