"""
Progress management for pipeline stages.

Calculates overall progress based on stage weights and reports it
through an optional callback.
"""

import logging
from typing import Awaitable, Callable

from brewdream.models.schemas import PipelineStage

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Signature: (stage, progress_percent, message) -> None
ProgressCallback = Callable[[PipelineStage, float, str], Awaitable[None]]


class ProgressManager:
    """
    Manages progress calculation and reporting for pipeline stages.

    Weights reflect typical wall time: the provider call dominates,
    publishing includes upload plus readiness polling.

    Example:
        manager = ProgressManager()
        overall = manager.calculate_overall_progress(
            PipelineStage.TRANSFORMING, 50
        )  # Returns 37.5 (5 + 10 + 22.5)
    """

    # Progress weights for each stage (must sum to 100)
    STAGE_WEIGHTS = {
        PipelineStage.ACQUIRING: 5,
        PipelineStage.PROMPTING: 10,
        PipelineStage.TRANSFORMING: 45,
        PipelineStage.PUBLISHING: 40,
    }

    STAGE_ORDER = [
        PipelineStage.ACQUIRING,
        PipelineStage.PROMPTING,
        PipelineStage.TRANSFORMING,
        PipelineStage.PUBLISHING,
    ]

    def calculate_overall_progress(
        self,
        current_stage: PipelineStage,
        stage_progress: float = 100,
    ) -> float:
        """
        Calculate overall progress percentage.

        Args:
            current_stage: Current pipeline stage
            stage_progress: Progress within current stage (0-100)

        Returns:
            Overall progress (0-100)
        """
        if current_stage == PipelineStage.COMPLETED:
            return 100.0
        if current_stage not in self.STAGE_WEIGHTS:
            return 0.0

        base_progress = 0.0
        for stage in self.STAGE_ORDER:
            if stage == current_stage:
                break
            base_progress += self.STAGE_WEIGHTS[stage]

        stage_contribution = (stage_progress / 100) * self.STAGE_WEIGHTS[current_stage]
        return min(base_progress + stage_contribution, 100)

    async def update_progress(
        self,
        callback: ProgressCallback | None,
        stage: PipelineStage,
        stage_progress: float,
        message: str,
    ) -> None:
        """
        Update progress via callback.

        Args:
            callback: Progress callback (may be None)
            stage: Current pipeline stage
            stage_progress: Progress within current stage (0-100)
            message: Human-readable status message
        """
        if callback is None:
            return

        overall_progress = self.calculate_overall_progress(stage, stage_progress)

        try:
            await callback(stage, overall_progress, message)
        except Exception as e:
            # Never fail due to callback error
            logger.warning(f"Progress callback error: {e}")
