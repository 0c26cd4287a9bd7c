"""Generator capability protocol and the built-in offline generator."""

from ecoforge.generators.base import Generator, GeneratorOutput, GeneratorResponse
from ecoforge.generators.offline import OfflineGenerator

__all__ = ["Generator", "GeneratorOutput", "GeneratorResponse", "OfflineGenerator"]
