"""AI-assisted code review and onboarding documentation for repositories."""

__version__ = "0.1.0"
