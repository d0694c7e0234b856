"""Generation record store."""

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from adstudio.core.images import normalize_generation_images
from adstudio.models.generation import GENERATION_STATUSES, TERMINAL_STATUSES, Generation

logger = logging.getLogger(__name__)

CREATABLE_FIELDS = frozenset(
    {
        "brand_kit_id",
        "template_id",
        "campaign_batch_id",
        "prompt",
        "headline",
        "body_copy",
        "cta",
        "concept",
        "avatar",
        "asset_ids",
        "metadata",
    }
)

UPDATABLE_FIELDS = frozenset(
    {
        "status",
        "generated_images",
        "selected_image_url",
        "error",
        "prompt",
        "headline",
        "body_copy",
        "cta",
        "concept",
        "avatar",
        "asset_ids",
        "metadata",
        "campaign_batch_id",
    }
)

# Public field name -> mapped attribute, where they differ
_ATTRIBUTE_NAMES = {"metadata": "generation_metadata"}


class GenerationsRepository:
    """Generation rows, always scoped to the owning client."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, generation_id: int, client_id: int) -> Optional[Generation]:
        return (
            self.session.query(Generation)
            .filter(Generation.id == generation_id, Generation.client_id == client_id)
            .first()
        )

    def list(self, client_id: int, limit: int = 50, offset: int = 0) -> List[Generation]:
        """List a client's generations, newest first."""
        return (
            self.session.query(Generation)
            .filter(Generation.client_id == client_id)
            .order_by(Generation.created_at.desc(), Generation.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def list_by_batch(self, batch_id: int, client_id: int) -> List[Generation]:
        """List the generations created for a campaign batch, in creation order."""
        return (
            self.session.query(Generation)
            .filter(
                Generation.campaign_batch_id == batch_id,
                Generation.client_id == client_id,
            )
            .order_by(Generation.id.asc())
            .all()
        )

    def create(self, client_id: int, **fields: Any) -> Generation:
        """Create a pending generation.

        Args:
            client_id: Owning client
            **fields: Any of ``CREATABLE_FIELDS``; other keys are ignored

        Returns:
            Generation: The persisted row
        """
        asset_ids = fields.get("asset_ids")
        generation = Generation(
            client_id=client_id,
            status="pending",
            brand_kit_id=fields.get("brand_kit_id") or None,
            template_id=fields.get("template_id") or None,
            campaign_batch_id=fields.get("campaign_batch_id"),
            prompt=fields.get("prompt"),
            headline=fields.get("headline"),
            body_copy=fields.get("body_copy"),
            cta=fields.get("cta"),
            concept=fields.get("concept"),
            avatar=fields.get("avatar"),
            asset_ids=list(asset_ids) if isinstance(asset_ids, (list, tuple)) else [],
            generated_images=[],
            generation_metadata=dict(fields.get("metadata") or {}),
        )
        self.session.add(generation)
        self.session.commit()
        self.session.refresh(generation)
        return generation

    def update(self, generation_id: int, client_id: int, fields: Mapping[str, Any]) -> Optional[Generation]:
        """Apply a partial update.

        Only keys present in ``fields`` are written. ``generated_images`` is
        normalized before storage, using ``selected_image_url`` from the same
        call (if present) to mark the selected entry.

        Returns:
            The updated row, or None if it does not exist for this client

        Raises:
            ValueError: If ``status`` is not a known generation status, or the
                row is already done or failed and ``status`` would move it
        """
        if "status" in fields and fields["status"] not in GENERATION_STATUSES:
            raise ValueError(f"Invalid generation status: {fields['status']!r}")

        generation = self.get(generation_id, client_id)
        if generation is None:
            return None

        changes = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
        if not changes:
            return generation

        new_status = changes.get("status")
        if new_status and generation.status in TERMINAL_STATUSES and new_status != generation.status:
            raise ValueError(f"Generation {generation_id} is already {generation.status}")

        if "generated_images" in changes:
            changes["generated_images"] = normalize_generation_images(
                changes["generated_images"],
                fields.get("selected_image_url"),
            )

        for key, value in changes.items():
            setattr(generation, _ATTRIBUTE_NAMES.get(key, key), value)
        generation.updated_at = datetime.now(timezone.utc)

        self.session.commit()
        self.session.refresh(generation)
        return generation
