"""Core domain logic for the symptom journal insight engine.

This package contains the business logic and domain models,
isolated from storage and presentation for easy testing and reasoning.
"""

from insights import observability  # noqa: F401  (configures structlog once)
