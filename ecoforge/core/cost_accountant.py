"""Advisory cost estimation from abstract resource units.

Rates are per million units, keyed by model id.  An unknown model costs
0.0 and logs a warning; estimation never blocks a run.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from ecoforge.models.tasks import GenerationTaskResult

logger = logging.getLogger(__name__)

UnitEstimator = Callable[[str], int]


class ModelRate(BaseModel):
    """Input/output price per million units for one model."""

    model_config = ConfigDict(frozen=True)

    input_rate: float = Field(ge=0)
    output_rate: float = Field(ge=0)


@runtime_checkable
class RateTable(Protocol):
    """Supplies rates by model id; ``None`` when the model is unknown."""

    def rates_for(self, model_id: str) -> ModelRate | None:
        ...


# Example list prices in USD per million tokens.
DEFAULT_RATES: dict[str, ModelRate] = {
    "gemini-pro": ModelRate(input_rate=0.5, output_rate=1.5),
    "gemini-1.5-pro": ModelRate(input_rate=3.5, output_rate=10.5),
    "gpt-3.5-turbo": ModelRate(input_rate=0.5, output_rate=1.5),
    "gpt-4-turbo": ModelRate(input_rate=10.0, output_rate=30.0),
    "gpt-4o": ModelRate(input_rate=5.0, output_rate=15.0),
    "claude-3-opus": ModelRate(input_rate=15.0, output_rate=75.0),
    "claude-3-sonnet": ModelRate(input_rate=3.0, output_rate=15.0),
    "azure-openai-gpt4": ModelRate(input_rate=12.0, output_rate=36.0),
    "aws-bedrock-claude3": ModelRate(input_rate=16.0, output_rate=80.0),
    "llama-3-8b": ModelRate(input_rate=0.2, output_rate=0.2),
    "mixtral-8x7b": ModelRate(input_rate=0.3, output_rate=0.3),
}


class StaticRateTable:
    """Case-insensitive, dict-backed rate table."""

    def __init__(self, rates: dict[str, ModelRate] | None = None) -> None:
        source = DEFAULT_RATES if rates is None else rates
        self._rates = {k.lower(): v for k, v in source.items()}

    def rates_for(self, model_id: str) -> ModelRate | None:
        return self._rates.get(model_id.lower())

    @property
    def model_ids(self) -> list[str]:
        return sorted(self._rates)


def chars_per_unit_estimator(chars_per_unit: int = 4) -> UnitEstimator:
    """Build the default heuristic: one unit per *chars_per_unit* characters."""

    def _estimate(text: str) -> int:
        return math.ceil(len(text) / chars_per_unit)

    return _estimate


class CostAccountant:
    """Turns unit counts into a monetary estimate.

    Parameters
    ----------
    rate_table:
        Rate source. Defaults to ``StaticRateTable()``.
    unit_estimator:
        Heuristic used when a generator does not report its own unit
        counts. Defaults to one unit per 4 characters.
    """

    def __init__(
        self,
        rate_table: RateTable | None = None,
        unit_estimator: UnitEstimator | None = None,
    ) -> None:
        self.rate_table = rate_table or StaticRateTable()
        self._unit_estimator = unit_estimator or chars_per_unit_estimator()

    def estimate_units(self, text: str) -> int:
        return self._unit_estimator(text)

    def estimate(self, model_id: str, input_units: int, output_units: int) -> float:
        """Cost of *input_units* / *output_units* on *model_id*, 6-decimal precision."""
        rates = self.rate_table.rates_for(model_id)
        if rates is None:
            logger.warning("Cost estimation not available for model: %s", model_id)
            return 0.0
        input_cost = (input_units / 1_000_000) * rates.input_rate
        output_cost = (output_units / 1_000_000) * rates.output_rate
        return round(input_cost + output_cost, 6)

    def run_cost(
        self,
        model_id: str,
        results: Iterable[GenerationTaskResult],
        primary_input_units: int = 0,
        primary_output_units: int = 0,
    ) -> float:
        """Total run cost: primary units plus every non-skipped task's units."""
        total_in = primary_input_units
        total_out = primary_output_units
        for result in results:
            if result.counts_toward_cost:
                total_in += result.estimated_input_units
                total_out += result.estimated_output_units
        return self.estimate(model_id, total_in, total_out)
