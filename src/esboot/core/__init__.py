"""Core configuration, models, constants and errors."""
