"""
Command-line interface for Brewdream.

Wires settings, logging and services for one-off runs:
    brewdream prompt --hint "noir alley"
    brewdream transform --image snapshot.png --provider openai
    brewdream clip --playback-id abcd1234 --duration-ms 10000
    brewdream stream --prompt "cyberpunk alley with glowing particles"
    brewdream upload --file recording.webm --content-type video/webm
"""

import argparse
import asyncio
import base64
import json
import logging
import sys
from pathlib import Path

from brewdream.config import Settings, get_settings, load_polling_policies
from brewdream.logging_config import setup_logging
from brewdream.models.schemas import StreamDiffusionParams, TransformationRequest
from brewdream.services.asset_poller import AssetPollError, AssetReadinessPoller
from brewdream.services.asset_uploader import AssetUploader
from brewdream.services.clients.base import ClientError
from brewdream.services.clip_extractor import ClipExtractionError, ClipExtractor
from brewdream.services.pipeline import PipelineError, ProcessingStrategy, TransformationPipeline
from brewdream.services.prompt_source import PromptSource
from brewdream.services.session_initializer import RemoteSessionInitializer, SessionLauncher

logger = logging.getLogger(__name__)


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def run_prompt(args: argparse.Namespace, settings: Settings) -> int:
    """Generate one prompt."""
    strategy = ProcessingStrategy(settings)
    text_client = None if args.template else strategy.create_text_client()
    try:
        prompt = await PromptSource(text_client).generate(not args.template, args.hint)
    finally:
        if text_client is not None:
            await text_client.close()

    _print_json(prompt.model_dump(mode="json"))
    return 0


async def run_transform(args: argparse.Namespace, settings: Settings) -> int:
    """Run the transformation pipeline on a local file or URL."""
    image_base64 = None
    if args.image:
        image_base64 = base64.b64encode(Path(args.image).read_bytes()).decode("ascii")

    request = TransformationRequest(
        image_base64=image_base64,
        image_url=args.url,
        style_hint=args.hint,
        seed=args.seed,
        provider=args.provider,
        prompt=args.prompt,
        strength=args.strength,
    )

    async def report(stage, progress, message):
        print(f"[{progress:5.1f}%] {stage.value}: {message}", file=sys.stderr)

    async with TransformationPipeline(settings) as pipeline:
        result = await pipeline.run(request, progress_callback=report)

    _print_json(result.model_dump(mode="json"))
    return 0


async def run_clip(args: argparse.Namespace, settings: Settings) -> int:
    """Extract a clip from a live session."""
    policies = load_polling_policies(settings)
    async with ProcessingStrategy(settings).create_asset_store() as store:
        extractor = ClipExtractor(
            store,
            AssetReadinessPoller(store),
            policies["clip"],
            buffer_ms=settings.clip_buffer_ms,
        )
        handle = await extractor.extract_clip(args.playback_id, args.duration_ms)

    _print_json(handle.model_dump(mode="json"))
    return 0


async def run_stream(args: argparse.Namespace, settings: Settings) -> int:
    """Create a live session and wait for its configuration push."""
    params = StreamDiffusionParams(prompt=args.prompt)
    if args.seed is not None:
        params.seed = args.seed

    async with ProcessingStrategy(settings).create_session_provider() as provider:
        initializer = RemoteSessionInitializer(
            provider, retry_delay_ms=settings.session_config_retry_delay_ms
        )
        launcher = SessionLauncher(
            provider, initializer, max_attempts=settings.session_config_max_attempts
        )
        session = await launcher.start_session(args.pipeline_id or settings.default_pipeline_id, params)
        _print_json(session.model_dump(mode="json"))

        await launcher.wait_pending()

    print(f"Configured: {session.ready}", file=sys.stderr)
    return 0 if session.ready else 1


async def run_upload(args: argparse.Namespace, settings: Settings) -> int:
    """Upload a file (e.g. a session recording) and wait until it is playable."""
    path = Path(args.file)
    policy = load_polling_policies(settings)[args.policy]

    async with ProcessingStrategy(settings).create_asset_store() as store:
        uploader = AssetUploader(store, AssetReadinessPoller(store))
        handle = await uploader.upload(path.read_bytes(), args.content_type, args.name or path.name, policy)

    _print_json(handle.model_dump(mode="json"))
    return 0


COMMANDS = {
    "prompt": run_prompt,
    "transform": run_transform,
    "clip": run_clip,
    "stream": run_stream,
    "upload": run_upload,
}


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="brewdream",
        description="Brewdream - stylized snapshots and clips from live video",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    prompt = sub.add_parser("prompt", help="Generate a transformation prompt")
    prompt.add_argument("--hint", help="Style inspiration for the text model")
    prompt.add_argument("--template", action="store_true", help="Use templates instead of the text model")

    transform = sub.add_parser("transform", help="Transform an image and publish it")
    source = transform.add_mutually_exclusive_group(required=True)
    source.add_argument("--image", help="Path to source image")
    source.add_argument("--url", help="URL of source image")
    transform.add_argument("--hint", help="Style inspiration")
    transform.add_argument("--prompt", help="Use this prompt instead of generating one")
    transform.add_argument("--provider", help="Image provider to try first (livepeer, openai, dalle)")
    transform.add_argument("--seed", type=int, help="Seed (random if omitted)")
    transform.add_argument("--strength", type=float, help="Transform strength 0-1")

    clip = sub.add_parser("clip", help="Extract a clip from a live session")
    clip.add_argument("--playback-id", required=True, help="Live session playback id")
    clip.add_argument("--duration-ms", type=int, default=10_000, help="Clip length (default: 10000)")

    stream = sub.add_parser("stream", help="Start a live session and configure it")
    stream.add_argument("--prompt", required=True, help="StreamDiffusion prompt")
    stream.add_argument("--pipeline-id", help="Daydream pipeline id (default from settings)")
    stream.add_argument("--seed", type=int, help="StreamDiffusion seed")

    upload = sub.add_parser("upload", help="Upload a file to the asset store")
    upload.add_argument("--file", required=True, help="Path to file")
    upload.add_argument("--content-type", default="video/webm", help="MIME type (default: video/webm)")
    upload.add_argument("--name", help="Asset name (default: file name)")
    upload.add_argument(
        "--policy",
        choices=["image", "clip", "recording"],
        default="recording",
        help="Polling policy (default: recording)",
    )

    return p


def main() -> None:
    """Main entry point for CLI."""
    args = build_arg_parser().parse_args()
    settings = get_settings()
    setup_logging(settings)

    try:
        exit_code = asyncio.run(COMMANDS[args.cmd](args, settings))
    except (ClientError, PipelineError, ClipExtractionError, AssetPollError) as e:
        logger.error(f"{args.cmd} failed: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
