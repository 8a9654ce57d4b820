from .errors import (
    DuplicateNameError,
    InvalidConfigError,
    ResourceNotFoundError,
    TemplateProcessingError,
    UndefinedPlaceholderError,
)

__all__ = [
    "DuplicateNameError",
    "InvalidConfigError",
    "ResourceNotFoundError",
    "TemplateProcessingError",
    "UndefinedPlaceholderError",
]
