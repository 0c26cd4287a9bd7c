"""The Generator capability the orchestration core consumes.

Any object with a ``generate(kind, inputs)`` method satisfies the
``Generator`` protocol.  The call may return:

* an async iterator of text chunks (streaming),
* an awaitable resolving to ``GeneratorOutput``, ``str`` or ``dict``,
* or one of those values directly.

Model inference lives behind this seam; ecoforge ships only the offline
generator in ``ecoforge.generators.offline``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable
from typing import Any, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict

from ecoforge.models.artifacts import SerializedFile
from ecoforge.models.tasks import ArtifactKind


class GeneratorOutput(BaseModel):
    """A complete (non-streamed) generator response.

    ``files`` is used by the primary source generation; secondary tasks
    return ``content``.  Unit counts are optional: when absent the Cost
    Accountant's heuristic is applied.
    """

    model_config = ConfigDict(frozen=True)

    content: str | dict[str, Any] = ""
    files: list[SerializedFile] = []
    input_units: int | None = None
    output_units: int | None = None


GeneratorResponse = Union[
    AsyncIterator[str],
    Awaitable[Union[GeneratorOutput, str, dict[str, Any]]],
    GeneratorOutput,
    str,
    dict[str, Any],
]


@runtime_checkable
class Generator(Protocol):
    """Protocol for artifact generation backends."""

    def generate(self, kind: ArtifactKind, inputs: dict[str, Any]) -> GeneratorResponse:
        """Produce the artifact of *kind* from *inputs*.

        Parameters
        ----------
        kind:
            Which artifact to produce.
        inputs:
            Resolved task inputs (prompt, full project context, request
            options, and upstream task outputs keyed by task id).
        """
        ...
