"""Prompt enhancement endpoints."""
from fastapi import APIRouter

from creative_studio.schemas.generation import (
    EnhancePromptRequest,
    PromptEnhancement,
    TemplatePromptRequest,
)
from creative_studio.services.prompt_enhancer import (
    enhance_prompt_for_template,
    enhance_prompt_for_territory,
)

router = APIRouter()


@router.post("/enhance", response_model=PromptEnhancement)
def enhance_prompt(payload: EnhancePromptRequest):
    """Rewrite a raw prompt for a territory, brand, and cultural context."""
    return enhance_prompt_for_territory(
        payload.prompt,
        payload.territory,
        payload.brand_guidelines,
        payload.image_type,
        payload.cultural_context,
    )


@router.post("/template", response_model=PromptEnhancement)
def enhance_template_prompt(payload: TemplatePromptRequest):
    return enhance_prompt_for_template(
        payload.prompt,
        payload.campaign_type,
        payload.territory,
        payload.brand_guidelines,
        payload.channel,
        payload.media_type,
    )
