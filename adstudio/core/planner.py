"""Campaign planning using Semantic Kernel.

Compiles persona x angle combinations into a generation matrix. The LLM
enriches each combination with a prompt, concept, headline and rationale;
combinations it skips fall back to a generic prompt so a plan always has
one entry per combination and variant.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from semantic_kernel import Kernel
from semantic_kernel.connectors.ai.open_ai import OpenAIChatCompletion, OpenAIChatPromptExecutionSettings
from semantic_kernel.functions import KernelArguments, KernelFunctionFromPrompt

from adstudio.config import settings
from adstudio.models.brand_kit import BrandKit
from adstudio.schemas.campaign import CampaignJob, CampaignPlan, CampaignPlanRequest

logger = logging.getLogger(__name__)

MAX_COMBOS = 12
MAX_TOTAL_ADS = 20
VARIANT_CROPS = [
    "",
    ", close-up detail shot, tight framing",
    ", wide establishing shot, environmental context",
]

PLAN_ITEM_SCHEMA = json.dumps(
    {
        "combo_index": 0,
        "prompt": "standalone image generation prompt, plain comma-separated descriptors, no brand names, no embedded text",
        "concept": "one sentence: what this creative execution is doing and why",
        "headline": "suggested ad headline (8 words max)",
        "strategy_rationale": "one sentence: why this persona x angle pairing is strategically sound",
    },
    indent=2,
)

PLAN_TEMPLATE = """
<message role="system">{{system_message}}</message>

{{plan_prompt}}"""

PLAN_SYSTEM_MESSAGE = "You are a Meta ad strategist. You answer with JSON only."


class PlanningErrorCode(str, Enum):
    """Failure categories for campaign planning."""

    KEY_MISSING = "LLM_KEY_MISSING"
    PROVIDER_ERROR = "LLM_ERROR"


class PlanningError(Exception):
    """Exception raised when the planning model cannot be reached or fails."""

    def __init__(self, code: PlanningErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class Combo:
    """One persona x angle pairing."""

    index: int
    persona: str
    angle: str


def build_combos(personas: List[str], angles: List[str], limit: int = MAX_COMBOS) -> List[Combo]:
    """Cross personas with angles, persona-major, capped at ``limit``."""
    combos: List[Combo] = []
    for persona in personas:
        for angle in angles:
            if len(combos) >= limit:
                return combos
            combos.append(Combo(index=len(combos), persona=persona, angle=angle))
    return combos


def capped_ads_per_combo(ads_per_combo: int, combo_count: int) -> int:
    """Reduce variants per combo so the plan stays within MAX_TOTAL_ADS."""
    if combo_count <= 0:
        return ads_per_combo
    return min(ads_per_combo, MAX_TOTAL_ADS // combo_count) or 1


def variant_prompt(base_prompt: str, variant_index: int) -> str:
    """Apply the crop suffix for a variant; the first variant is the base prompt."""
    suffix = VARIANT_CROPS[variant_index] if variant_index < len(VARIANT_CROPS) else ""
    return f"{base_prompt}{suffix}" if suffix else base_prompt


def build_plan_prompt(
    combos: List[Combo],
    brand_kit: Optional[BrandKit] = None,
    goal: Optional[str] = None,
    headline: Optional[str] = None,
    cta: Optional[str] = None,
    product_image_url: Optional[str] = None,
) -> str:
    lines = [
        "You are a Meta ad strategist building a campaign generation matrix.",
        f"Return a JSON array of exactly {len(combos)} objects, one per persona x angle combination.",
        "Return JSON only: no markdown fences, no explanation.",
        "",
        "For each combination produce a distinct creative direction.",
        "prompt rules: plain comma-separated image generation prompt, no brand names, no embedded text, "
        "specific about lighting/composition/mood.",
        "",
        "Context:",
    ]

    if brand_kit is not None:
        if brand_kit.name:
            lines.append(f"Brand: {brand_kit.name}")
        if brand_kit.tagline:
            lines.append(f"Tagline: {brand_kit.tagline}")
        if brand_kit.tone_of_voice:
            lines.append(f"Tone: {brand_kit.tone_of_voice}")
        colors = [color for color in (brand_kit.primary_colors or []) if color]
        if colors:
            lines.append(f"Brand colors: {', '.join(colors)}")

    if goal:
        lines.append(f"Campaign goal: {goal}")
    if headline:
        lines.append(f"Working headline: {headline}")
    if cta:
        lines.append(f"CTA: {cta}")
    if product_image_url:
        lines.append("Note: a product photo will be used as the img2img base; compose prompt to showcase it.")

    lines.extend(["", "Persona x Angle combinations (use combo_index exactly as given):"])
    for combo in combos:
        lines.append(f"  [{combo.index}] Persona: {combo.persona}  |  Angle: {combo.angle}")

    lines.extend(
        [
            "",
            "Each object must follow this shape (combo_index must match the index above):",
            PLAN_ITEM_SCHEMA,
        ]
    )
    return "\n".join(lines)


def parse_plan_response(text: str) -> Dict[int, Dict[str, Any]]:
    """Parse the model output into a ``combo_index -> item`` map.

    Markdown fences are tolerated. Anything that is not a JSON array of
    objects with an integer ``combo_index`` is ignored.
    """
    cleaned = re.sub(r"^\s*```(?:json)?\s*|\s*```\s*$", "", text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Campaign plan response was not valid JSON")
        return {}

    if not isinstance(parsed, list):
        return {}

    enriched: Dict[int, Dict[str, Any]] = {}
    for item in parsed:
        if isinstance(item, dict) and isinstance(item.get("combo_index"), int) and not isinstance(
            item.get("combo_index"), bool
        ):
            enriched[item["combo_index"]] = item
    return enriched


def _text(item: Dict[str, Any], key: str) -> Optional[str]:
    value = item.get(key)
    return value.strip() if isinstance(value, str) else None


def expand_plan_items(
    combos: List[Combo],
    enriched: Dict[int, Dict[str, Any]],
    ads_per_combo: int,
    image_size: str,
    goal: Optional[str] = None,
    headline: Optional[str] = None,
    cta: Optional[str] = None,
    product_image_url: Optional[str] = None,
) -> List[CampaignJob]:
    """Expand enriched combinations into numbered plan items."""
    items: List[CampaignJob] = []
    for combo in combos:
        enriched_item = enriched.get(combo.index, {})
        base_prompt = _text(enriched_item, "prompt") or (
            f"{combo.angle} scene, {combo.persona}, professional Meta ad creative, high quality"
        )
        enriched_headline = _text(enriched_item, "headline")

        for variant in range(ads_per_combo):
            items.append(
                CampaignJob(
                    index=len(items) + 1,
                    persona=combo.persona,
                    angle=combo.angle,
                    prompt=variant_prompt(base_prompt, variant),
                    concept=_text(enriched_item, "concept") or "",
                    headline=enriched_headline if enriched_headline is not None else (headline or ""),
                    cta=cta or "",
                    image_size=image_size,
                    product_image_url=product_image_url or None,
                    metadata={
                        "goal": goal or None,
                        "strategy_rationale": _text(enriched_item, "strategy_rationale") or "",
                        "variant": variant + 1 if ads_per_combo > 1 else None,
                    },
                )
            )
    return items


class CampaignPlanner:
    """Plans campaign matrices with an OpenAI chat model through Semantic Kernel.

    Args:
        api_key: OpenAI API key (defaults to settings.openai_api_key)
        model: OpenAI model name (defaults to settings.openai_chat_model_id)
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_chat_model_id or "gpt-4o"
        self._kernel: Optional[Kernel] = None
        self._plan_func: Optional[KernelFunctionFromPrompt] = None

    def _ensure_kernel(self) -> Kernel:
        if not self.api_key:
            raise PlanningError(PlanningErrorCode.KEY_MISSING, "OPENAI_API_KEY is not configured")
        if self._kernel is None:
            kernel = Kernel()
            kernel.add_service(OpenAIChatCompletion(api_key=self.api_key, ai_model_id=self.model))

            execution_settings = OpenAIChatPromptExecutionSettings()
            execution_settings.max_tokens = 4000
            execution_settings.temperature = 0.8

            self._plan_func = KernelFunctionFromPrompt(
                function_name="plan_campaign",
                prompt=PLAN_TEMPLATE,
                template_format="handlebars",
                prompt_execution_settings=execution_settings,
            )
            self._kernel = kernel
        return self._kernel

    async def complete(self, plan_prompt: str) -> str:
        """Run the plan prompt and return the raw model text.

        Raises:
            PlanningError: If the key is missing or the model call fails
        """
        kernel = self._ensure_kernel()
        try:
            result = await kernel.invoke(
                function=self._plan_func,
                arguments=KernelArguments(system_message=PLAN_SYSTEM_MESSAGE, plan_prompt=plan_prompt),
            )
        except Exception as e:
            logger.error(f"Campaign planning call failed: {e}", exc_info=True)
            raise PlanningError(PlanningErrorCode.PROVIDER_ERROR, str(e)) from e
        return str(result.value[0].content) if result and result.value else ""

    async def plan(self, request: CampaignPlanRequest, brand_kit: Optional[BrandKit] = None) -> CampaignPlan:
        """Compile a plan from the request's personas and angles.

        Raises:
            ValueError: If no persona or no angle is given
            PlanningError: If the model call fails
        """
        if not request.personas:
            raise ValueError("At least one persona is required")
        if not request.angles:
            raise ValueError("At least one angle is required")

        goal = request.goal.strip() if request.goal and request.goal.strip() else None
        headline = request.headline.strip() if request.headline and request.headline.strip() else None
        cta = request.cta.strip() if request.cta and request.cta.strip() else None
        product_image_url = (
            request.product_image_url.strip()
            if request.product_image_url and request.product_image_url.strip()
            else None
        )

        combos = build_combos(request.personas, request.angles)
        ads_per_combo = capped_ads_per_combo(request.ads_per_combo, len(combos))

        text = await self.complete(
            build_plan_prompt(
                combos,
                brand_kit=brand_kit,
                goal=goal,
                headline=headline,
                cta=cta,
                product_image_url=product_image_url,
            )
        )
        enriched = parse_plan_response(text)
        logger.info(f"Campaign plan enriched {len(enriched)}/{len(combos)} combinations")

        items = expand_plan_items(
            combos,
            enriched,
            ads_per_combo,
            image_size=request.image_size or "square_hd",
            goal=goal,
            headline=headline,
            cta=cta,
            product_image_url=product_image_url,
        )
        return CampaignPlan(goal=goal, total_ads=len(items), items=items)
