from .planner import generate
from .resolvers import BuildDirectory, OutputResolver, ResourceResolver, ResourcesDirectory

__all__ = [
    "BuildDirectory",
    "OutputResolver",
    "ResourceResolver",
    "ResourcesDirectory",
    "generate",
]
