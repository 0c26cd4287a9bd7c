"""Error taxonomy shared by the orchestration core.

Task-level failures never surface as exceptions to the run's caller; they
are captured on ``GenerationTaskResult``.  These classes cross component
boundaries only for setup errors, primary-generation failure, and storage
problems.
"""

from __future__ import annotations


class EcoforgeError(Exception):
    """Base class for every error raised by ecoforge."""


class ValidationError(EcoforgeError, ValueError):
    """Malformed input: bad artifact path, empty prompt, broken catalogue."""


class GeneratorFailure(EcoforgeError, RuntimeError):
    """The external Generator capability raised or produced unusable output."""


class GeneratorTimeout(GeneratorFailure):
    """A generator call exceeded its timeout window."""


class PrimaryGenerationError(GeneratorFailure):
    """The primary source generation failed; no RunRecord is created."""


class PersistenceFailure(EcoforgeError, RuntimeError):
    """A storage backend failed to save, load, or delete."""


class NotFoundError(EcoforgeError, LookupError):
    """An unknown run id or artifact path was requested."""
