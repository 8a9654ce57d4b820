"""Error taxonomy for template processing."""

from __future__ import annotations


class TemplateProcessingError(Exception):
    """Base class for every error raised while configuring or generating."""


class InvalidConfigError(TemplateProcessingError, ValueError):
    """Raised when a mandatory field is blank, missing or malformed."""


class DuplicateNameError(TemplateProcessingError, ValueError):
    """Raised when two entries would share a name, identifier or output path."""


class ResourceNotFoundError(TemplateProcessingError, FileNotFoundError):
    """Raised when a template or configuration file is missing or unreadable."""


class UndefinedPlaceholderError(TemplateProcessingError):
    """Raised when a template references a placeholder with no configured value."""
