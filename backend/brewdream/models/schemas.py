"""
Pydantic models for the transformation and clip orchestration core.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class PipelineStage(str, Enum):
    """Stage of a transformation pipeline run."""
    ACQUIRING = "acquiring"
    PROMPTING = "prompting"
    TRANSFORMING = "transforming"
    PUBLISHING = "publishing"
    COMPLETED = "completed"


class PromptMethod(str, Enum):
    """How a transformation prompt was produced."""
    GENERATED = "generated"
    TEMPLATED = "templated"
    PROVIDED = "provided"  # supplied by the caller


class AssetPhase(str, Enum):
    """Lifecycle phase of a remote asset.

    READY and FAILED are terminal.
    """
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"

    @classmethod
    def from_remote(cls, value: str | None) -> "AssetPhase":
        """Map a provider phase string (waiting, uploading, error, ...) to a phase."""
        normalized = (value or "").strip().lower()
        if normalized == "ready":
            return cls.READY
        if normalized in ("failed", "error"):
            return cls.FAILED
        return cls.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self is not AssetPhase.PROCESSING


# ── Requests ─────────────────────────────────────────────────────────────────


class TransformationRequest(BaseModel):
    """Input for a single transformation pipeline run."""

    model_config = ConfigDict(frozen=True)

    image_base64: str | None = None  # raw base64 or data URL
    image_url: str | None = None
    style_hint: str | None = None
    seed: int | None = None
    provider: str | None = None  # preferred provider, tried first
    prompt: str | None = None  # caller-supplied prompt skips generation
    strength: float | None = Field(default=None, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _require_image(self) -> "TransformationRequest":
        if not self.image_base64 and not self.image_url:
            raise ValueError("image_base64 or image_url is required")
        return self


# ── Prompt ───────────────────────────────────────────────────────────────────


class PromptComponents(BaseModel):
    """Fragments used by the templated prompt method."""

    model_config = ConfigDict(frozen=True)

    style: str
    environment: str
    effect: str


class Prompt(BaseModel):
    """Transformation prompt text plus how it was made."""

    model_config = ConfigDict(frozen=True)

    text: str
    method: PromptMethod
    components: PromptComponents | None = None

    @model_validator(mode="after")
    def _components_only_for_templates(self) -> "Prompt":
        if self.method != PromptMethod.TEMPLATED and self.components is not None:
            raise ValueError("components are only recorded for templated prompts")
        return self


# ── Transformation ───────────────────────────────────────────────────────────


class TransformOptions(BaseModel):
    """Per-call options passed to image providers."""

    model_config = ConfigDict(frozen=True)

    seed: int | None = None
    strength: float = 0.7


class TransformedArtifact(BaseModel):
    """Image produced by the first successful provider."""

    model_config = ConfigDict(frozen=True)

    image_reference: str  # remote URL or data URL
    prompt: str
    provider: str
    seed: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @computed_field
    @property
    def is_inline(self) -> bool:
        """True if the reference is an inline data URL."""
        return self.image_reference.startswith("data:")


class DurableReference(BaseModel):
    """Artifact stored in the durable asset store."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["durable"] = "durable"
    url: str
    asset_id: str
    playback_id: str | None = None


class InlineReference(BaseModel):
    """Artifact returned as produced by the provider after a publish failure."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    url: str
    degraded: Literal[True] = True
    reason: str = ""


ArtifactReference = Annotated[
    DurableReference | InlineReference, Field(discriminator="kind")
]


class PipelineResult(BaseModel):
    """Outcome of a successful pipeline run (durable or degraded)."""

    model_config = ConfigDict(frozen=True)

    prompt: Prompt
    reference: ArtifactReference
    provider_used: str
    seed: int

    @computed_field
    @property
    def image_url(self) -> str:
        """URL to render: durable URL, or the inline fallback."""
        return self.reference.url

    @computed_field
    @property
    def degraded(self) -> bool:
        """True if the publish stage failed and the inline artifact was returned."""
        return isinstance(self.reference, InlineReference)


# ── Remote assets ────────────────────────────────────────────────────────────


class UploadTarget(BaseModel):
    """Upload slot handed out by the asset store."""

    upload_url: str
    asset_id: str
    tus_endpoint: str | None = None


class AssetStatus(BaseModel):
    """One observation of a remote asset's state."""

    phase: AssetPhase
    download_url: str | None = None
    playback_id: str | None = None
    progress: float | None = None
    error: str | None = None


class RemoteAssetHandle(BaseModel):
    """
    Opaque asset id plus its last observed lifecycle state.

    Only observe() changes the phase, and a terminal phase never changes.
    """

    asset_id: str
    phase: AssetPhase = AssetPhase.PROCESSING
    download_url: str | None = None
    playback_id: str | None = None
    progress: float | None = None
    error: str | None = None

    def observe(self, status: AssetStatus) -> "RemoteAssetHandle":
        """
        Apply a status observation.

        A "ready" report without a download URL is not usable yet and
        leaves the handle processing.

        Args:
            status: Latest status from the asset store

        Returns:
            self, for chaining

        Raises:
            ValueError: If the observation would move a terminal handle
        """
        phase = status.phase
        if phase == AssetPhase.READY and not status.download_url:
            phase = AssetPhase.PROCESSING

        if self.phase.is_terminal:
            if phase != self.phase:
                raise ValueError(
                    f"Asset {self.asset_id} is {self.phase.value}, "
                    f"cannot move to {phase.value}"
                )
            return self

        self.phase = phase
        self.download_url = status.download_url or self.download_url
        self.playback_id = status.playback_id or self.playback_id
        self.progress = status.progress
        self.error = status.error
        return self


# ── Live sessions ────────────────────────────────────────────────────────────


class RemoteSessionHandle(BaseModel):
    """Live streaming session created on the session provider."""

    id: str
    output_playback_id: str | None = None
    whip_url: str | None = None
    ready: bool = False  # set once a configuration push is accepted


class ControlNetConfig(BaseModel):
    """Single controlnet entry for StreamDiffusion."""

    model_id: str
    preprocessor: str
    preprocessor_params: dict[str, Any] = Field(default_factory=dict)
    conditioning_scale: float = 0.0


def _default_controlnets() -> list[ControlNetConfig]:
    return [
        ControlNetConfig(
            model_id="thibaud/controlnet-sd21-openpose-diffusers",
            preprocessor="pose_tensorrt",
        ),
        ControlNetConfig(
            model_id="thibaud/controlnet-sd21-hed-diffusers",
            preprocessor="soft_edge",
        ),
        ControlNetConfig(
            model_id="thibaud/controlnet-sd21-canny-diffusers",
            preprocessor="canny",
            preprocessor_params={"high_threshold": 200, "low_threshold": 100},
        ),
        ControlNetConfig(
            model_id="thibaud/controlnet-sd21-depth-diffusers",
            preprocessor="depth_tensorrt",
        ),
        ControlNetConfig(
            model_id="thibaud/controlnet-sd21-color-diffusers",
            preprocessor="passthrough",
        ),
    ]


class StreamDiffusionParams(BaseModel):
    """Configuration pushed to a live StreamDiffusion session."""

    prompt: str
    model_id: str = "stabilityai/sd-turbo"
    negative_prompt: str = "blurry, low quality, flat, 2d"
    num_inference_steps: int = 50
    seed: int = 42
    t_index_list: list[int] = Field(default_factory=lambda: [6, 12, 18])
    controlnets: list[ControlNetConfig] = Field(default_factory=_default_controlnets)

    def to_payload(self) -> dict[str, Any]:
        """Body for the session update call."""
        return {
            "model_id": "streamdiffusion",
            "pipeline": "live-video-to-video",
            "params": self.model_dump(),
        }


# ── Clips ────────────────────────────────────────────────────────────────────


class ClipWindow(BaseModel):
    """Segment of a live session to extract, in epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    start_ms: int
    end_ms: int

    @model_validator(mode="after")
    def _ordered(self) -> "ClipWindow":
        if self.end_ms < self.start_ms:
            raise ValueError("clip window end precedes start")
        return self

    @classmethod
    def ending_before(cls, now_ms: int, duration_ms: int, buffer_ms: int = 2000) -> "ClipWindow":
        """
        Window of duration_ms that ends buffer_ms before now.

        The buffer keeps the request behind what the live session has
        already materialized.
        """
        end_ms = now_ms - buffer_ms
        return cls(start_ms=end_ms - duration_ms, end_ms=end_ms)

    @computed_field
    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms
