"""Image generation client backed by fal.ai."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import fal_client

from adstudio.config import settings

logger = logging.getLogger(__name__)


class ImageSize(str, Enum):
    """Aspect presets accepted by the image models."""

    SQUARE_HD = "square_hd"
    SQUARE = "square"
    PORTRAIT_4_3 = "portrait_4_3"
    PORTRAIT_16_9 = "portrait_16_9"
    LANDSCAPE_4_3 = "landscape_4_3"
    LANDSCAPE_16_9 = "landscape_16_9"


DEFAULT_IMAGE_SIZE = ImageSize.SQUARE_HD.value
DEFAULT_STRENGTH = 0.85
MAX_IMAGES_PER_CALL = 4


class ImageGenerationErrorCode(str, Enum):
    """Failure categories for an image generation call."""

    KEY_MISSING = "FAL_KEY_MISSING"
    TIMEOUT = "FAL_TIMEOUT"
    PROVIDER_ERROR = "FAL_ERROR"


class ImageGenerationError(Exception):
    """Exception raised when an image generation call fails."""

    def __init__(self, code: ImageGenerationErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"ImageGenerationError(code={self.code.value}, message={self.message!r})"


@dataclass
class ImageGenerationResult:
    """Normalized result of an image generation call."""

    images: List[Dict[str, Any]] = field(default_factory=list)
    seed: Optional[int] = None
    request_id: Optional[str] = None
    model: Optional[str] = None


def normalize_provider_images(raw: Any) -> List[Dict[str, Any]]:
    """Normalize the provider's image list to ``[{url, width, height, content_type}]``.

    Models return either plain URL strings or objects; entries without a URL
    are dropped.
    """
    if not isinstance(raw, list):
        return []

    images = []
    for image in raw:
        if isinstance(image, str):
            entry = {"url": image, "width": None, "height": None, "content_type": "image/jpeg"}
        elif isinstance(image, dict):
            entry = {
                "url": image.get("url") or None,
                "width": image.get("width") or None,
                "height": image.get("height") or None,
                "content_type": image.get("content_type") or "image/jpeg",
            }
        else:
            continue
        if entry["url"]:
            images.append(entry)
    return images


def _provider_error_message(exc: Exception) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return str(exc) or "Unknown FAL error"


class ImageGenerator:
    """Text-to-image and image-to-image generation through fal.ai.

    One instance is built at startup and shared by every batch. A missing
    API key does not prevent construction; calls fail with
    ``ImageGenerationErrorCode.KEY_MISSING`` instead, so routes that do not
    generate images keep working.

    Args:
        api_key: fal.ai key (defaults to settings.fal_key)
        model: Text-to-image model (defaults to settings.fal_model)
        img2img_model: Image-to-image model (defaults to settings.fal_img2img_model)
        timeout: Hard per-call timeout in seconds (defaults to settings.fal_timeout_seconds)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        img2img_model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.fal_key
        self.model = model or settings.fal_model
        self.img2img_model = img2img_model or settings.fal_img2img_model
        self.timeout = timeout if timeout is not None else settings.fal_timeout_seconds
        self._client: Optional[fal_client.AsyncClient] = None

    @property
    def client(self) -> fal_client.AsyncClient:
        """Lazy-load the async fal client."""
        if self._client is None:
            self._client = fal_client.AsyncClient(key=self.api_key)
        return self._client

    def describe(self) -> None:
        """Log the resolved configuration once at startup."""
        if not self.api_key:
            logger.warning("FAL_KEY is not set; image generation will fail at request time")
            return
        logger.info(f"Image generator ready txt2img={self.model} img2img={self.img2img_model} timeout={self.timeout}s")

    def _build_arguments(
        self,
        prompt: str,
        image_size: str,
        num_images: int,
        image_url: Optional[str],
        strength: float,
    ) -> Dict[str, Any]:
        arguments: Dict[str, Any] = {
            "prompt": prompt,
            "num_images": num_images,
            "image_size": image_size,
            "enable_safety_checker": False,
        }
        if image_url:
            arguments["image_url"] = image_url
            arguments["strength"] = strength
        return arguments

    async def _call(self, model: str, arguments: Dict[str, Any]) -> tuple[Dict[str, Any], Optional[str]]:
        handle = await self.client.submit(model, arguments=arguments)
        result = await handle.get()
        return result or {}, handle.request_id

    async def generate(
        self,
        prompt: str,
        image_size: str = DEFAULT_IMAGE_SIZE,
        num_images: int = 1,
        image_url: Optional[str] = None,
        strength: float = DEFAULT_STRENGTH,
    ) -> ImageGenerationResult:
        """Generate images for a prompt.

        Supplying ``image_url`` switches to image-to-image mode, where
        ``strength`` controls how far the output departs from the source.

        Args:
            prompt: Image prompt
            image_size: One of the ``ImageSize`` presets
            num_images: Number of variants, 1-4
            image_url: Optional source image for image-to-image
            strength: Denoising strength between 0 and 1

        Returns:
            ImageGenerationResult: Normalized images plus seed, request id and model

        Raises:
            ValueError: If the options are out of range
            ImageGenerationError: If the key is missing, the call times out, or the provider fails
        """
        if image_size not in {size.value for size in ImageSize}:
            raise ValueError(f"Unsupported image size: {image_size}")
        if not 1 <= num_images <= MAX_IMAGES_PER_CALL:
            raise ValueError(f"num_images must be between 1 and {MAX_IMAGES_PER_CALL}")
        if not 0 <= strength <= 1:
            raise ValueError("strength must be between 0 and 1")

        if not self.api_key:
            raise ImageGenerationError(ImageGenerationErrorCode.KEY_MISSING, "FAL_KEY is not configured")

        model = self.img2img_model if image_url else self.model
        arguments = self._build_arguments(prompt, image_size, num_images, image_url, strength)

        try:
            data, request_id = await asyncio.wait_for(self._call(model, arguments), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ImageGenerationError(
                ImageGenerationErrorCode.TIMEOUT,
                f"FAL request timed out after {self.timeout}s",
            ) from e
        except Exception as e:
            logger.error(f"Image generation failed on {model}: {e}")
            raise ImageGenerationError(ImageGenerationErrorCode.PROVIDER_ERROR, _provider_error_message(e)) from e

        return ImageGenerationResult(
            images=normalize_provider_images(data.get("images")),
            seed=data.get("seed"),
            request_id=request_id,
            model=model,
        )
