"""
Pipeline orchestrator for image transformation.

Coordinates all stages from acquiring the source image to publishing
the result in the durable asset store.
"""

import logging
import random
from datetime import datetime, timezone

import httpx

from brewdream.config import PollingPolicy, Settings, get_settings, load_polling_policies
from brewdream.models.schemas import (
    ArtifactReference,
    DurableReference,
    PipelineResult,
    PipelineStage,
    Prompt,
    PromptMethod,
    TransformationRequest,
    TransformedArtifact,
    TransformOptions,
)
from brewdream.services.asset_poller import AssetReadinessPoller
from brewdream.services.asset_uploader import AssetUploader
from brewdream.services.clients.base import ClientError, TextClient, UpstreamError
from brewdream.services.fallback_chain import ProviderChainError, ProviderFallbackChain
from brewdream.services.prompt_source import PromptSource
from brewdream.services.providers.base import ImageProvider
from brewdream.utils.media_utils import decode_image_payload, fetch_bytes, sniff_content_type

from .fallback_factory import FallbackFactory
from .processing_strategy import ProcessingStrategy
from .progress_manager import ProgressCallback, ProgressManager

logger = logging.getLogger(__name__)

SEED_RANGE = 10_000_000


class PipelineError(Exception):
    """
    Pipeline stage error with context.

    Attributes:
        stage: Pipeline stage where error occurred
        message: Error description
        cause: Original exception (if any)
    """

    def __init__(
        self,
        stage: PipelineStage,
        message: str,
        cause: Exception | None = None,
    ):
        self.stage = stage
        self.message = message
        self.cause = cause
        super().__init__(f"[{stage.value}] {message}")


class TransformationPipeline:
    """
    Pipeline for turning a snapshot into a published transformed image.

    Stages run strictly in order; only the publish stage may fail
    without failing the run.

    Collaborators default to ones built from settings and can be
    injected (tests pass fakes).

    Example:
        pipeline = TransformationPipeline()
        result = await pipeline.run(
            TransformationRequest(image_base64=snapshot, style_hint="noir")
        )
        print(result.image_url, result.degraded)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        providers: list[ImageProvider] | None = None,
        prompt_source: PromptSource | None = None,
        uploader: AssetUploader | None = None,
        image_policy: PollingPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            settings: Application settings (uses defaults if None)
            providers: Image provider adapters (built from settings if None)
            prompt_source: Prompt source (built per run from settings if None)
            uploader: Asset uploader (built from settings if None)
            image_policy: Polling policy for published images
            http_client: Client for downloading remote images
            rng: Random source for seeds
        """
        self.settings = settings or get_settings()
        self.progress_manager = ProgressManager()
        self.fallback_factory = FallbackFactory()
        self.processing_strategy = ProcessingStrategy(self.settings)

        self._providers = providers
        self._prompt_source = prompt_source
        self._uploader = uploader
        self.image_policy = image_policy or load_polling_policies(self.settings)["image"]
        self.http_client = http_client
        self.rng = rng or random.Random()

    async def close(self) -> None:
        """Close clients created from settings."""
        await self.processing_strategy.close()

    async def __aenter__(self) -> "TransformationPipeline":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ═══════════════════════════════════════════════════════════════════════════
    # Full Pipeline
    # ═══════════════════════════════════════════════════════════════════════════

    async def run(
        self,
        request: TransformationRequest,
        provider_order: list[str] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> PipelineResult:
        """
        Run one transformation.

        Stages:
        1. Acquire source image bytes
        2. Produce prompt (skipped if the request carries one)
        3. Transform through the provider fallback chain
        4. Publish to the asset store (failure degrades, never raises)

        Args:
            request: Transformation request
            provider_order: Provider names to try (defaults to settings,
                request preference first)
            progress_callback: Optional async callback for progress updates

        Returns:
            PipelineResult with durable or inline reference

        Raises:
            PipelineError: If acquiring, prompting or transforming fails
        """
        seed = request.seed if request.seed is not None else self.rng.randrange(SEED_RANGE)
        options = TransformOptions(
            seed=seed,
            strength=request.strength if request.strength is not None else self.settings.default_strength,
        )

        # Stage 1: Acquire
        await self.progress_manager.update_progress(
            progress_callback, PipelineStage.ACQUIRING, 0, "Acquiring source image"
        )
        image = await self._do_acquire(request)

        # Stage 2: Prompt
        await self.progress_manager.update_progress(
            progress_callback, PipelineStage.PROMPTING, 0, "Preparing prompt"
        )
        prompt = await self._do_prompt(request)

        # Stage 3: Transform
        await self.progress_manager.update_progress(
            progress_callback, PipelineStage.TRANSFORMING, 0, f"Transforming: {prompt.text}"
        )
        order = provider_order or self.processing_strategy.resolve_order(request.provider)
        artifact = await self._do_transform(image, prompt, options, order)

        # Stage 4: Publish
        await self.progress_manager.update_progress(
            progress_callback,
            PipelineStage.PUBLISHING,
            0,
            f"Publishing result from {artifact.provider}",
        )
        reference = await self._do_publish(artifact)

        result = PipelineResult(
            prompt=prompt,
            reference=reference,
            provider_used=artifact.provider,
            seed=seed,
        )

        await self.progress_manager.update_progress(
            progress_callback,
            PipelineStage.COMPLETED,
            100,
            "Completed (degraded)" if result.degraded else "Completed",
        )
        logger.info(
            f"Pipeline complete: provider={result.provider_used}, seed={seed}, "
            f"degraded={result.degraded}"
        )
        return result

    # ═══════════════════════════════════════════════════════════════════════════
    # Stages
    # ═══════════════════════════════════════════════════════════════════════════

    async def _do_acquire(self, request: TransformationRequest) -> bytes:
        try:
            if request.image_base64:
                image = decode_image_payload(request.image_base64)
            else:
                image = await fetch_bytes(request.image_url, self.http_client)
        except (ValueError, httpx.HTTPError) as e:
            logger.error(f"Acquire failed: {e}")
            raise PipelineError(PipelineStage.ACQUIRING, f"Cannot read source image: {e}", e) from e

        if not image:
            raise PipelineError(PipelineStage.ACQUIRING, "Source image is empty")

        logger.debug(f"Acquired {len(image)} bytes ({sniff_content_type(image)})")
        return image

    async def _do_prompt(self, request: TransformationRequest) -> Prompt:
        if request.prompt and request.prompt.strip():
            logger.debug("Using caller-supplied prompt")
            return Prompt(text=request.prompt.strip(), method=PromptMethod.PROVIDED)

        use_model = self.settings.use_generative_prompt
        text_client: TextClient | None = None
        source = self._prompt_source

        try:
            if source is None:
                if use_model:
                    text_client = self.processing_strategy.create_text_client()
                source = PromptSource(text_client)

            try:
                return await source.generate(use_model, request.style_hint)
            except UpstreamError as e:
                if not self.settings.template_prompt_fallback:
                    raise
                logger.warning(f"Prompt generation failed, using template: {e}")
                return source.generate_from_template()

        except ClientError as e:
            logger.error(f"Prompt stage failed: {e}")
            raise PipelineError(PipelineStage.PROMPTING, str(e), e) from e

        finally:
            if text_client is not None:
                await text_client.close()

    async def _do_transform(
        self,
        image: bytes,
        prompt: Prompt,
        options: TransformOptions,
        order: list[str],
    ) -> TransformedArtifact:
        try:
            chain = ProviderFallbackChain(self._select_providers(order))
            return await chain.transform(image, prompt, options)
        except ProviderChainError as e:
            raise PipelineError(PipelineStage.TRANSFORMING, str(e), e) from e
        except ClientError as e:
            logger.error(f"Transform stage misconfigured: {e}")
            raise PipelineError(PipelineStage.TRANSFORMING, str(e), e) from e

    def _select_providers(self, order: list[str]) -> list[ImageProvider]:
        if self._providers is None:
            return self.processing_strategy.create_image_providers(order)

        by_name = {provider.name: provider for provider in self._providers}
        selected = [by_name[name] for name in order if name in by_name]
        if not selected:
            raise PipelineError(
                PipelineStage.TRANSFORMING,
                f"No image provider available for order {order}",
            )
        return selected

    async def _do_publish(self, artifact: TransformedArtifact) -> ArtifactReference:
        data: bytes | None = None
        try:
            if artifact.is_inline:
                data = decode_image_payload(artifact.image_reference)
            else:
                data = await fetch_bytes(artifact.image_reference, self.http_client)

            uploader = self._uploader or self._build_uploader()
            stamp = datetime.now(timezone.utc).isoformat()
            handle = await uploader.upload(
                data,
                sniff_content_type(data),
                f"Brewdream Transform {stamp}.png",
                self.image_policy,
            )
            return DurableReference(
                url=handle.download_url,
                asset_id=handle.asset_id,
                playback_id=handle.playback_id,
            )

        except Exception as e:
            return self.fallback_factory.create_inline_reference(artifact, e, data)

    def _build_uploader(self) -> AssetUploader:
        store = self.processing_strategy.create_asset_store()
        self._uploader = AssetUploader(store, AssetReadinessPoller(store))
        return self._uploader
