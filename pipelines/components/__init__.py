"""KFP v2 components — each file exports one @dsl.component."""

from pipelines.components.stage import run_delivery_stage

__all__ = [
    "run_delivery_stage",
]
