from __future__ import annotations


class AppError(Exception):
    # Base class for domain errors (intended, meaningful failures).
    pass


class ImporterError(AppError):
    # Raised when a survey file cannot be loaded at all (unreadable, empty or structurally invalid).
    pass


class UnknownFieldError(AppError):
    # Raised when a breakdown/metric key is not in the whitelist of analysable fields.
    pass


class ConfigError(AppError):
    # Raised for invalid settings (unknown lexicon, unknown column mode, etc.).
    pass
