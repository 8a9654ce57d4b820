"""Manifestgen - generate one file per replacement from a shared template.

Pydantic models describe the configuration; Jinja2 expands ``${name}`` tokens.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .cli import main
from .core.models import TemplateProcessing
from .execution.runner import run_phase
from .generation.planner import generate

__all__ = ["TemplateProcessing", "generate", "main", "run_phase"]
