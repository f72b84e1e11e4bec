"""Language catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from cipherstudio.engine.models.api import LanguageResponse
from cipherstudio.engine.templates import LANGUAGE_TEMPLATES, conversion_targets

router = APIRouter(prefix="/languages", tags=["languages"])


@router.get("/list", response_model=list[LanguageResponse])
async def list_languages() -> list[LanguageResponse]:
    """Every catalog language, in catalog order."""
    return [
        LanguageResponse.from_template(template, conversion_targets(language_id))
        for language_id, template in LANGUAGE_TEMPLATES.items()
    ]
