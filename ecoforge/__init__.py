"""ecoforge: fan-out generation orchestration.

One prompt produces a project's source files, then every eligible
secondary artifact (tests, docs, reports, deployment manifests) is
generated concurrently:
  - Artifact Tree with change tracking, diffing and observers
  - Concurrent task fan-out with per-task failure isolation
  - Cost estimation from a pluggable rate table
  - Bounded, sealed run history with user feedback
"""

__version__ = "0.1.0"
__description__ = "Fan-out orchestration for multi-artifact project generation"

from ecoforge.core.artifact_tree import ArtifactTree
from ecoforge.core.cost_accountant import CostAccountant
from ecoforge.core.history_store import HistoryStore
from ecoforge.core.orchestrator import Orchestrator
from ecoforge.cli.app import app as cli

__all__ = [
    "ArtifactTree",
    "CostAccountant",
    "HistoryStore",
    "Orchestrator",
    "cli",
    "__version__",
]
