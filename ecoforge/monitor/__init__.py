"""Read-only rich views over runs, history and the task catalogue.

Modules
-------
renderer
    ``RunRenderer`` turns ``RunRecord`` / ``RunOutcome`` / ``DiffReport``
    values into Rich renderables for terminal display.
"""

from ecoforge.monitor.renderer import RunRenderer

__all__ = ["RunRenderer"]
