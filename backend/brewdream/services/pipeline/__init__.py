"""
Pipeline module for image transformation.

This package contains the decomposed pipeline components:
- orchestrator: Stage coordination
- progress_manager: Progress tracking and calculation
- fallback_factory: Degraded result creation
- processing_strategy: Client and image provider selection

Example:
    from brewdream.services.pipeline import TransformationPipeline, PipelineError

    async with TransformationPipeline() as pipeline:
        result = await pipeline.run(request)

    # With provider selection
    from brewdream.services.pipeline import ProcessingStrategy

    strategy = ProcessingStrategy(settings)
    providers = strategy.create_image_providers(strategy.resolve_order("openai"))
"""

from .orchestrator import (
    TransformationPipeline,
    PipelineError,
)
from .progress_manager import ProgressManager, ProgressCallback
from .fallback_factory import FallbackFactory
from .processing_strategy import ProcessingStrategy, ProviderInfo, TextProviderType

__all__ = [
    # Main orchestrator
    "TransformationPipeline",
    "PipelineError",
    # Supporting classes
    "ProgressManager",
    "ProgressCallback",
    "FallbackFactory",
    # Provider selection
    "ProcessingStrategy",
    "ProviderInfo",
    "TextProviderType",
]
