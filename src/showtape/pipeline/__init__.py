"""Recording pipeline for showtape."""

from showtape.pipeline.models import PipelineOptions, PipelineStage, RunReport
from showtape.pipeline.orchestrator import PipelineOrchestrator

__all__ = [
    "PipelineOptions",
    "PipelineOrchestrator",
    "PipelineStage",
    "RunReport",
]
