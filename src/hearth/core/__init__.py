"""Core configuration, models and errors shared across Hearth."""
