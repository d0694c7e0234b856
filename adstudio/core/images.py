"""Normalization of generated image lists stored on generation records.

Every entry stored in ``generated_images`` carries the same shape so callers
can render, score and filter images without guarding against missing keys::

    {"url", "width", "height", "content_type", "is_selected", "score", "status"}

``status`` is either ``ready`` or ``archived``; anything else is stored as ``ready``.
"""

from typing import Any, Mapping, Optional

DEFAULT_CONTENT_TYPE = "image/jpeg"
IMAGE_STATUSES = ("ready", "archived")


def _image_url(image: Any) -> Optional[str]:
    if isinstance(image, str):
        return image or None
    if isinstance(image, Mapping):
        return image.get("url") or None
    return None


def normalize_image_entry(image: Any, selected_url: Optional[str] = None) -> Optional[dict[str, Any]]:
    """Normalize a single image entry.

    Args:
        image: Plain URL string or a mapping with at least a ``url`` key
        selected_url: URL of the generation's primary image, if any

    Returns:
        The normalized entry, or None if no URL can be resolved
    """
    url = _image_url(image)
    if not url:
        return None

    source: Mapping[str, Any] = image if isinstance(image, Mapping) else {}
    content_type = source.get("content_type")
    status = source.get("status")
    if status not in IMAGE_STATUSES:
        status = "ready"

    return {
        "url": url,
        "width": source.get("width"),
        "height": source.get("height"),
        "content_type": content_type if content_type is not None else DEFAULT_CONTENT_TYPE,
        "is_selected": bool(selected_url) and url == selected_url,
        "score": source.get("score"),
        "status": status,
    }


def normalize_generation_images(images: Any, selected_url: Optional[str] = None) -> list[dict[str, Any]]:
    """Normalize a generated image list, dropping entries without a URL.

    Applying this to its own output with the same ``selected_url`` returns an
    equal list.
    """
    if not isinstance(images, list):
        return []
    normalized = (normalize_image_entry(image, selected_url) for image in images)
    return [entry for entry in normalized if entry is not None]


def resolve_image_url(generation: Any) -> Optional[str]:
    """Primary image of a generation: the selected URL, else the first generated image."""
    selected_image_url = getattr(generation, "selected_image_url", None)
    if selected_image_url:
        return selected_image_url
    generated_images = getattr(generation, "generated_images", None)
    if isinstance(generated_images, list) and generated_images:
        return _image_url(generated_images[0])
    return None
