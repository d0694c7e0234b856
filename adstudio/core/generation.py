"""Single-image generation: prompt augmentation, call options and execution.

Used by the synchronous generate routes. Each call creates one generation
record, moves it through processing, and finishes it as done with the
normalized images or failed with a user-facing label.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import status
from sqlalchemy.orm import Session

from adstudio.core.image_generator import (
    DEFAULT_IMAGE_SIZE,
    DEFAULT_STRENGTH,
    ImageGenerationError,
    ImageGenerationErrorCode,
    ImageGenerator,
    ImageSize,
)
from adstudio.models.brand_kit import BrandKit
from adstudio.models.generation import Generation
from adstudio.repositories.generations import GenerationsRepository

logger = logging.getLogger(__name__)

# Default denoising strengths for image-to-image
PRODUCT_IMAGE_STRENGTH = 0.75
REFERENCE_IMAGE_STRENGTH = 0.9
VARIATION_STRENGTH = DEFAULT_STRENGTH

_IMAGE_SIZES = frozenset(size.value for size in ImageSize)


class GenerationFailed(Exception):
    """Raised when a generation was recorded as failed.

    Carries the failed row, the HTTP status to answer with and the label
    stored as the generation's error.
    """

    def __init__(self, generation: Optional[Generation], status_code: int, label: str) -> None:
        super().__init__(label)
        self.generation = generation
        self.status_code = status_code
        self.label = label


def build_brand_prompt(prompt: str, brand_kit: Optional[BrandKit]) -> str:
    """Append the brand kit's identity to a prompt.

    Only fields that are set are included; a kit with nothing set leaves the
    prompt unchanged.
    """
    if brand_kit is None:
        return prompt

    parts = []
    if brand_kit.name:
        parts.append(f"brand: {brand_kit.name}")
    if brand_kit.tagline:
        parts.append(f"tagline: {brand_kit.tagline}")
    if brand_kit.tone_of_voice:
        parts.append(f"tone: {brand_kit.tone_of_voice}")
    colors = brand_kit.primary_colors if isinstance(brand_kit.primary_colors, list) else []
    if colors and colors[0]:
        parts.append(f"primary color: {colors[0]}")

    if not parts:
        return prompt
    return f"{prompt}. {', '.join(parts)}. Professional Meta ad creative, high quality."


def resolve_image_size(requested: Optional[str], inherited: Optional[str] = None) -> str:
    """Requested preset if valid, else the inherited one if valid, else ``square_hd``."""
    if requested in _IMAGE_SIZES:
        return requested
    if inherited in _IMAGE_SIZES:
        return inherited
    return DEFAULT_IMAGE_SIZE


def resolve_image_input(
    product_image_url: Optional[str],
    reference_image_url: Optional[str],
    strength: Optional[float] = None,
) -> Tuple[Optional[str], float]:
    """Pick the image-to-image source and its strength.

    A product photo takes priority over a style reference. Without an
    explicit strength, product photos use 0.75 and references 0.9.
    """
    image_url = product_image_url or reference_image_url or None
    if strength is not None:
        return image_url, strength
    return image_url, PRODUCT_IMAGE_STRENGTH if product_image_url else REFERENCE_IMAGE_STRENGTH


def failure_status(error: Exception) -> Tuple[int, str]:
    """HTTP status and stored label for a failed generation call."""
    code = error.code if isinstance(error, ImageGenerationError) else None
    if code == ImageGenerationErrorCode.KEY_MISSING:
        return status.HTTP_503_SERVICE_UNAVAILABLE, "Image generation is not configured (FAL_KEY missing)"
    if code == ImageGenerationErrorCode.TIMEOUT:
        return status.HTTP_502_BAD_GATEWAY, "Image generation timed out. Please try again"
    message = error.message if isinstance(error, ImageGenerationError) else str(error)
    return status.HTTP_502_BAD_GATEWAY, f"Image generation failed: {message}"


async def run_generation(
    db: Session,
    image_generator: ImageGenerator,
    generation: Generation,
    prompt: str,
    call_options: Dict[str, Any],
    metadata: Dict[str, Any],
) -> Generation:
    """Execute one image call for an existing pending generation.

    Args:
        db: Database session
        image_generator: Image generator client
        generation: The pending generation to execute
        prompt: Final prompt sent to the model (after brand augmentation)
        call_options: Keyword options for ``ImageGenerator.generate``
        metadata: Request details merged into the generation's metadata

    Returns:
        Generation: The generation marked done

    Raises:
        GenerationFailed: If the call failed; the generation is marked failed first
    """
    repo = GenerationsRepository(db)
    client_id = generation.client_id
    repo.update(generation.id, client_id, {"status": "processing"})

    try:
        result = await image_generator.generate(prompt, **call_options)
    except Exception as e:
        status_code, label = failure_status(e)
        logger.warning(f"Generation {generation.id} failed: {e}")
        failure: Dict[str, Any] = {"status": "failed", "error": label}
        if isinstance(e, ImageGenerationError):
            failure["metadata"] = {**metadata, "error_code": e.code.value}
        failed = repo.update(generation.id, client_id, failure)
        raise GenerationFailed(failed, status_code, label) from e

    first_image = result.images[0] if result.images else None
    done = repo.update(
        generation.id,
        client_id,
        {
            "status": "done",
            "generated_images": result.images,
            "selected_image_url": first_image["url"] if first_image else None,
            "metadata": {
                **metadata,
                "fal_request_id": result.request_id,
                "fal_seed": result.seed,
                "fal_model": result.model,
            },
        },
    )
    logger.info(f"Generation {generation.id} done with {len(result.images)} images")
    return done
