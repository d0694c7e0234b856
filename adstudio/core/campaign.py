"""Campaign batch orchestration.

A batch turns a list of planned jobs into tracked generation records and
runs them through the image generator with a fixed concurrency ceiling.
Submission only writes the records; execution happens afterwards, detached
from the request that submitted the batch, and callers observe progress by
polling ``get_batch``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session, sessionmaker

from adstudio.config import settings
from adstudio.core.generation import PRODUCT_IMAGE_STRENGTH
from adstudio.core.image_generator import DEFAULT_IMAGE_SIZE, ImageGenerationError, ImageGenerator
from adstudio.core.images import resolve_image_url
from adstudio.repositories.campaign_batches import CampaignBatchesRepository
from adstudio.repositories.generations import GenerationsRepository
from adstudio.schemas.campaign import CampaignJob

logger = logging.getLogger(__name__)


class BatchValidationError(ValueError):
    """Raised when a batch is rejected before any record is created."""

    pass


@dataclass
class SubmittedItem:
    """Identity of one job inside a submitted batch."""

    index: int
    generation_id: int
    status: str = "pending"


@dataclass
class BatchSubmission:
    """Everything needed to answer the submit call and to run the batch later."""

    batch_id: int
    client_id: int
    items: List[SubmittedItem] = field(default_factory=list)
    jobs: List[CampaignJob] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)


class WorkerPool:
    """Run a handler over items with a fixed number of concurrent workers.

    Each worker claims the next unclaimed item, awaits the handler to
    completion, then claims another; workers exit when the queue is empty.
    An exception from one item is logged and does not stop the pool.
    """

    def __init__(self, concurrency: int) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency

    async def run(self, items: Sequence[Any], handler: Callable[[Any], Awaitable[Any]]) -> List[Any]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=max(len(items), 1))
        for position, item in enumerate(items):
            queue.put_nowait((position, item))

        results: List[Any] = [None] * len(items)

        async def worker(worker_id: int) -> None:
            while True:
                try:
                    position, item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    results[position] = await handler(item)
                except Exception as e:
                    logger.exception(f"Worker {worker_id} failed on item {position}: {e}")
                finally:
                    queue.task_done()

        workers = min(self.concurrency, len(items))
        await asyncio.gather(*(worker(n) for n in range(workers)))
        return results


class CampaignBatchOrchestrator:
    """Creates campaign batches and executes their jobs.

    Args:
        session_factory: Factory for sessions used by background execution
        image_generator: Shared image generator client
        concurrency: Maximum jobs in flight per batch (defaults to settings.batch_concurrency)
        max_items: Maximum jobs per batch (defaults to settings.batch_max_items)
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        image_generator: ImageGenerator,
        concurrency: Optional[int] = None,
        max_items: Optional[int] = None,
    ) -> None:
        self.session_factory = session_factory
        self.image_generator = image_generator
        self.concurrency = concurrency or settings.batch_concurrency
        self.max_items = max_items or settings.batch_max_items
        self.pool = WorkerPool(self.concurrency)

    def validate(self, jobs: Sequence[CampaignJob]) -> None:
        if not jobs:
            raise BatchValidationError("items[] array is required")
        if len(jobs) > self.max_items:
            raise BatchValidationError(f"Maximum {self.max_items} items per batch")

    def submit(
        self,
        db: Session,
        jobs: Sequence[CampaignJob],
        client_id: int,
        goal: Optional[str] = None,
    ) -> BatchSubmission:
        """Create the batch and one pending generation per job, in list order.

        Nothing is executed here; pass the returned submission to
        ``run_batch``.

        Raises:
            BatchValidationError: If the job list is empty or over the cap
        """
        self.validate(jobs)
        goal = goal.strip() if goal and goal.strip() else None

        batch = CampaignBatchesRepository(db).create(
            client_id=client_id,
            goal=goal,
            total_items=len(jobs),
            metadata={"source": "campaign_plan"},
        )

        generations = GenerationsRepository(db)
        submission = BatchSubmission(batch_id=batch.id, client_id=client_id, jobs=list(jobs))
        for position, job in enumerate(jobs):
            index = job.index if job.index is not None else position + 1
            job_metadata = job.metadata or {}
            generation = generations.create(
                client_id=client_id,
                campaign_batch_id=batch.id,
                prompt=job.prompt,
                headline=job.headline or None,
                cta=job.cta or None,
                concept=job.concept or None,
                avatar=job.persona or None,
                metadata={
                    "campaign_batch_id": batch.id,
                    "batch_item_index": index,
                    "persona": job.persona or None,
                    "angle": job.angle or None,
                    "goal": goal or job_metadata.get("goal") or None,
                    "strategy_rationale": job_metadata.get("strategy_rationale") or None,
                },
            )
            submission.items.append(SubmittedItem(index=index, generation_id=generation.id))

        logger.info(f"Campaign batch {batch.id} created for client {client_id} with {len(jobs)} items")
        return submission

    async def run_batch(self, submission: BatchSubmission) -> None:
        """Execute every job of a submitted batch; never raises."""
        work = list(zip(submission.jobs, submission.items))

        async def handle(entry: tuple[CampaignJob, SubmittedItem]) -> bool:
            job, item = entry
            return await self.execute_item(job, item.generation_id, submission.client_id, submission.batch_id)

        try:
            results = await self.pool.run(work, handle)
            succeeded = sum(1 for result in results if result)
            logger.info(f"Campaign batch {submission.batch_id} finished: {succeeded}/{len(work)} succeeded")
        except Exception as e:
            logger.exception(f"Campaign batch {submission.batch_id} error: {e}")

    def _call_options(self, job: CampaignJob) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "image_size": job.image_size or DEFAULT_IMAGE_SIZE,
            "num_images": 1,
        }
        if job.product_image_url:
            options["image_url"] = job.product_image_url
            options["strength"] = PRODUCT_IMAGE_STRENGTH
        return options

    async def execute_item(self, job: CampaignJob, generation_id: int, client_id: int, batch_id: int) -> bool:
        """Run one job: pending -> processing -> done | failed.

        A failure is terminal for the job and is recorded on the generation.
        The batch status is refreshed afterwards whatever the outcome.

        Returns:
            bool: True if the job produced images
        """
        existing_metadata: Dict[str, Any] = {}
        try:
            with self.session_factory() as db:
                generation = GenerationsRepository(db).update(generation_id, client_id, {"status": "processing"})
                if generation is None:
                    raise LookupError(f"Generation {generation_id} not found")
                existing_metadata = dict(generation.generation_metadata or {})

            result = await self.image_generator.generate(job.prompt, **self._call_options(job))
            first_image = result.images[0] if result.images else None
            selected_url = first_image["url"] if first_image else None

            with self.session_factory() as db:
                GenerationsRepository(db).update(
                    generation_id,
                    client_id,
                    {
                        "status": "done",
                        "generated_images": result.images,
                        "selected_image_url": selected_url,
                        "metadata": {
                            **existing_metadata,
                            "fal_request_id": result.request_id,
                            "fal_seed": result.seed,
                            "fal_model": result.model,
                        },
                    },
                )
            logger.info(f"Generation {generation_id} in batch {batch_id} done")
            return True
        except Exception as e:
            message = str(e) or "Generation failed"
            logger.warning(f"Generation {generation_id} in batch {batch_id} failed: {message}")
            failure: Dict[str, Any] = {"status": "failed", "error": message}
            if isinstance(e, ImageGenerationError):
                failure["metadata"] = {**existing_metadata, "error_code": e.code.value}
            try:
                with self.session_factory() as db:
                    GenerationsRepository(db).update(generation_id, client_id, failure)
            except Exception as db_error:
                logger.exception(f"Could not record failure for generation {generation_id}: {db_error}")
            return False
        finally:
            try:
                with self.session_factory() as db:
                    CampaignBatchesRepository(db).refresh_status(batch_id, client_id)
            except Exception as refresh_error:
                # Batch may show a stale status until the next refresh
                logger.warning(f"Status refresh failed for batch {batch_id}: {refresh_error}")

    def get_batch(self, db: Session, batch_id: int, client_id: int) -> Optional[Dict[str, Any]]:
        """Return the batch with a per-item view reconstructed from its generations."""
        batch = CampaignBatchesRepository(db).get(batch_id, client_id)
        if batch is None:
            return None

        items = []
        for generation in GenerationsRepository(db).list_by_batch(batch_id, client_id):
            meta = generation.generation_metadata or {}
            items.append(
                {
                    "generation_id": generation.id,
                    "index": meta.get("batch_item_index"),
                    "persona": meta.get("persona"),
                    "angle": meta.get("angle"),
                    "status": generation.status,
                    "prompt": generation.prompt,
                    "headline": generation.headline,
                    "concept": generation.concept,
                    "image_url": resolve_image_url(generation),
                    "error": generation.error,
                    "created_at": generation.created_at,
                }
            )

        return {
            "id": batch.id,
            "client_id": batch.client_id,
            "goal": batch.goal,
            "total_items": batch.total_items,
            "status": batch.status,
            "metadata": batch.batch_metadata or {},
            "created_at": batch.created_at,
            "updated_at": batch.updated_at,
            "items": items,
        }
