"""Single-image generation router."""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from adstudio.core.dependencies import get_client_scope, get_image_generator, parse_id
from adstudio.core.generation import (
    VARIATION_STRENGTH,
    GenerationFailed,
    build_brand_prompt,
    resolve_image_input,
    resolve_image_size,
    run_generation,
)
from adstudio.core.image_generator import ImageGenerator
from adstudio.core.images import resolve_image_url
from adstudio.database import get_db
from adstudio.models.brand_kit import BrandKit
from adstudio.models.client import Client
from adstudio.repositories.generations import GenerationsRepository
from adstudio.schemas.generation import (
    GenerateEditRequest,
    GenerateRequest,
    GenerateResponse,
    GenerationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generate", tags=["generate"])


def _failure_exception(error: GenerationFailed) -> HTTPException:
    detail: Dict[str, Any] = {"error": error.label, "generation": None}
    if error.generation is not None:
        detail["generation"] = GenerationResponse.model_validate(error.generation).model_dump(mode="json")
    return HTTPException(status_code=error.status_code, detail=detail)


def _require_prompt(prompt: Optional[str]) -> str:
    if not prompt:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="prompt is required",
        )
    return prompt


@router.post("", response_model=GenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate(
    generate_request: GenerateRequest,
    client: Annotated[Client, Depends(get_client_scope)],
    image_generator: Annotated[ImageGenerator, Depends(get_image_generator)],
    db: Annotated[Session, Depends(get_db)],
) -> GenerateResponse:
    """Generate ad images for a prompt and wait for the result.

    A product image takes priority over a reference image as the
    image-to-image base. The generation is stored before the call, so a
    failed call leaves a failed record behind.

    Args:
        generate_request: Prompt, copy fields and generation options
        client: Active client workspace
        image_generator: Image generator client
        db: Database session

    Returns:
        GenerateResponse: The completed generation

    Raises:
        HTTPException: 400 without a prompt, 404 for a foreign brand kit,
            503 if image generation is not configured, 502 on provider failure
    """
    prompt = _require_prompt(generate_request.prompt)

    brand_kit = db.query(BrandKit).filter(BrandKit.client_id == client.id).first()
    if generate_request.brand_kit_id is not None and (brand_kit is None or brand_kit.id != generate_request.brand_kit_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Brand kit not found",
        )

    final_prompt = build_brand_prompt(prompt, brand_kit if generate_request.apply_brand_kit else None)
    image_size = resolve_image_size(generate_request.image_size)
    image_url, strength = resolve_image_input(
        generate_request.product_image_url,
        generate_request.reference_image_url,
        generate_request.strength,
    )

    generation = GenerationsRepository(db).create(
        client.id,
        brand_kit_id=generate_request.brand_kit_id,
        template_id=generate_request.template_id,
        prompt=prompt,
        headline=generate_request.headline,
        body_copy=generate_request.body_copy,
        cta=generate_request.cta,
        concept=generate_request.concept,
        avatar=generate_request.avatar,
        asset_ids=generate_request.asset_ids,
    )

    call_options: Dict[str, Any] = {"image_size": image_size, "num_images": generate_request.num_images}
    metadata: Dict[str, Any] = {
        "num_images": generate_request.num_images,
        "image_size": image_size,
        "apply_brand_kit": generate_request.apply_brand_kit,
        "augmented_prompt": final_prompt,
        "reference_image_url": generate_request.reference_image_url,
        "product_image_url": generate_request.product_image_url,
    }
    if image_url:
        call_options.update(image_url=image_url, strength=strength)
        metadata["strength"] = strength

    try:
        done = await run_generation(db, image_generator, generation, final_prompt, call_options, metadata)
    except GenerationFailed as e:
        raise _failure_exception(e)

    return GenerateResponse(generation=GenerationResponse.model_validate(done))


@router.post("/edit", response_model=GenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate_variation(
    edit_request: GenerateEditRequest,
    client: Annotated[Client, Depends(get_client_scope)],
    image_generator: Annotated[ImageGenerator, Depends(get_image_generator)],
    db: Annotated[Session, Depends(get_db)],
) -> GenerateResponse:
    """Create an image-to-image variation of a completed generation.

    The source's primary image is the base. Brand kit, template and asset
    links carry over from the source; the size is inherited unless a valid
    preset is given.

    Raises:
        HTTPException: 400 for a missing source id or prompt, 404 if the source
            does not exist, 422 if it is not done or has no image, 503/502 on
            generation failure
    """
    source_id = parse_id(edit_request.generation_id)
    if source_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="generation_id is required and must be a number",
        )
    prompt = _require_prompt(edit_request.prompt)

    repo = GenerationsRepository(db)
    source = repo.get(source_id, client.id)
    if source is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Source generation not found",
        )
    if source.status != "done":
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f'Source generation has status "{source.status}". Only completed generations can be varied.',
        )

    source_image_url = resolve_image_url(source)
    if not source_image_url:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Source generation has no image to vary from.",
        )

    brand_kit = None
    if edit_request.apply_brand_kit:
        brand_kit = db.query(BrandKit).filter(BrandKit.client_id == client.id).first()
    final_prompt = build_brand_prompt(prompt, brand_kit)

    source_metadata = source.generation_metadata or {}
    image_size = resolve_image_size(edit_request.image_size, source_metadata.get("image_size"))
    strength = edit_request.strength if edit_request.strength is not None else VARIATION_STRENGTH

    generation = repo.create(
        client.id,
        brand_kit_id=source.brand_kit_id,
        template_id=source.template_id,
        prompt=prompt,
        headline=edit_request.headline,
        body_copy=edit_request.body_copy,
        cta=edit_request.cta,
        concept=edit_request.concept,
        avatar=edit_request.avatar,
        asset_ids=source.asset_ids or [],
    )

    call_options = {
        "image_size": image_size,
        "num_images": edit_request.num_images,
        "image_url": source_image_url,
        "strength": strength,
    }
    metadata = {
        "num_images": edit_request.num_images,
        "image_size": image_size,
        "apply_brand_kit": edit_request.apply_brand_kit,
        "augmented_prompt": final_prompt,
        "strength": strength,
        "parent_generation_id": source.id,
        "parent_image_url": source_image_url,
    }

    try:
        done = await run_generation(db, image_generator, generation, final_prompt, call_options, metadata)
    except GenerationFailed as e:
        raise _failure_exception(e)

    logger.info(f"Generation {done.id} created as a variation of {source.id}")
    return GenerateResponse(generation=GenerationResponse.model_validate(done))
