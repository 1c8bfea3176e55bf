"""
Transformation prompt source.

Produces the short scene description that steers image providers,
either from a text model or from fixed vocabularies.
"""

import logging
import random
import re

from brewdream.models.schemas import Prompt, PromptComponents, PromptMethod
from brewdream.services.clients.base import ConfigurationError, TextClient, UpstreamError

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 120

SYSTEM_PROMPT = (
    "You are a visual imagination engine. Given a photo of a real person, "
    "generate one short descriptive transformation prompt that keeps them "
    "recognizable but makes the background and style surreal, artistic, or trippy. "
    "Output only the prompt, 10 words or fewer. "
    "Avoid changing clothing or pose; focus on scene, lighting, palette."
)

# Picked at random when the caller gives no style hint
STYLE_INSPIRATIONS = (
    "psychedelic neon forest",
    "dreamy underwater café",
    "banana-dimension self-portrait",
    "vaporwave reinterpretation with pastel gradients",
    "holographic chrome cityscape",
    "glitchy VHS cosmos, RGB split",
    "stained glass cathedral light",
    "fractal kaleidoscope garden",
    "surreal oil painting with impasto",
    "noir rain-soaked alley with neon",
)

STYLES = (
    "psychedelic neon",
    "dreamy vaporwave",
    "surreal melting",
    "cosmic galaxy",
    "glitch art",
    "retro 80s",
    "cyberpunk",
    "watercolor",
    "oil painting",
    "pixel art",
    "holographic",
    "infrared photography",
    "stained glass",
    "ukiyo-e woodblock",
    "synthwave",
    "abstract expressionism",
    "low poly geometric",
    "paper cutout collage",
)

ENVIRONMENTS = (
    "underwater café",
    "floating in space",
    "tropical jungle",
    "neon cityscape",
    "crystal cave",
    "desert oasis",
    "mountain peak",
    "aurora borealis sky",
    "bamboo forest",
    "coral reef",
    "cyberpunk alley",
    "cloud kingdom",
    "enchanted garden",
    "mars landscape",
    "rainbow dimension",
    "mirror maze",
    "bioluminescent forest",
    "steampunk workshop",
)

EFFECTS = (
    "with swirling patterns",
    "with liquid chrome textures",
    "with fractal backgrounds",
    "bathed in colorful light",
    "surrounded by geometric shapes",
    "with kaleidoscope effects",
    "with glowing particles",
    "with prismatic reflections",
    "with ethereal mist",
    "with electric energy",
    "with floating objects",
    "with crystalline structures",
    "with flowing ribbons",
    "with starbursts",
    "with iridescent surfaces",
)

TEMPLATES = (
    "{style} portrait in {environment} {effect}",
    "{environment} with {style} aesthetic {effect}",
    "{style} style transformation {effect}, set in {environment}",
    "{environment}, {style} colors {effect}",
)

_NEWLINES = re.compile(r"[\r\n]+")


def sanitize_prompt(text: str) -> str:
    """Collapse newlines to single spaces and cap the length."""
    return _NEWLINES.sub(" ", text).strip()[:MAX_PROMPT_CHARS]


class PromptSource:
    """
    Generates transformation prompts.

    The generative method makes exactly one text model call and never
    falls back to templates on its own; callers decide that.

    Example:
        source = PromptSource(text_client)
        prompt = await source.generate(use_generative_model=True, style_hint="noir")
    """

    def __init__(
        self,
        text_client: TextClient | None = None,
        rng: random.Random | None = None,
    ):
        """
        Args:
            text_client: Text model client (None disables the generative method)
            rng: Random source for templates and inspirations
        """
        self.text_client = text_client
        self.rng = rng or random.Random()

    async def generate(
        self,
        use_generative_model: bool,
        style_hint: str | None = None,
    ) -> Prompt:
        """
        Produce a prompt.

        Args:
            use_generative_model: Ask the text model instead of templating
            style_hint: Inspiration for the text model (templates ignore it)

        Raises:
            ConfigurationError: Generative method without a text client
            UpstreamError: Text model call failed or returned nothing usable
        """
        if use_generative_model:
            return await self.generate_with_model(style_hint)
        return self.generate_from_template()

    async def generate_with_model(self, style_hint: str | None = None) -> Prompt:
        if self.text_client is None:
            raise ConfigurationError("No text model configured for prompt generation", provider="prompt")

        hint = (style_hint or "").strip() or self.rng.choice(STYLE_INSPIRATIONS)
        user_prompt = f"Style inspiration: {hint}\nReturn a single short prompt."

        raw = await self.text_client.complete(
            SYSTEM_PROMPT,
            user_prompt,
            temperature=0.9,
            max_tokens=32,
        )
        if not isinstance(raw, str):
            raise UpstreamError("Text model returned a non-text response", provider="prompt")

        text = sanitize_prompt(raw)
        if not text:
            raise UpstreamError("Text model returned an empty prompt", provider="prompt")

        logger.info(f"Generated prompt: {text}")
        return Prompt(text=text, method=PromptMethod.GENERATED)

    def generate_from_template(self) -> Prompt:
        """Pick one fragment of each vocabulary and a sentence template."""
        components = PromptComponents(
            style=self.rng.choice(STYLES),
            environment=self.rng.choice(ENVIRONMENTS),
            effect=self.rng.choice(EFFECTS),
        )
        template = self.rng.choice(TEMPLATES)
        text = template.format(**components.model_dump())

        logger.debug(f"Templated prompt: {text}")
        return Prompt(text=text, method=PromptMethod.TEMPLATED, components=components)
