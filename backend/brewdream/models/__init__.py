"""
Pydantic models for the orchestration core.
"""

from brewdream.models.schemas import (
    ArtifactReference,
    AssetPhase,
    AssetStatus,
    ClipWindow,
    ControlNetConfig,
    DurableReference,
    InlineReference,
    PipelineResult,
    PipelineStage,
    Prompt,
    PromptComponents,
    PromptMethod,
    RemoteAssetHandle,
    RemoteSessionHandle,
    StreamDiffusionParams,
    TransformationRequest,
    TransformedArtifact,
    TransformOptions,
    UploadTarget,
)

__all__ = [
    "ArtifactReference",
    "AssetPhase",
    "AssetStatus",
    "ClipWindow",
    "ControlNetConfig",
    "DurableReference",
    "InlineReference",
    "PipelineResult",
    "PipelineStage",
    "Prompt",
    "PromptComponents",
    "PromptMethod",
    "RemoteAssetHandle",
    "RemoteSessionHandle",
    "StreamDiffusionParams",
    "TransformationRequest",
    "TransformedArtifact",
    "TransformOptions",
    "UploadTarget",
]
