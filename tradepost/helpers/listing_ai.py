"""
AI helpers for listing creation: description copy, price suggestion and
content moderation. All three need OPENAI_API_KEY; callers decide what to do
when they fail.
"""
import logging
import re
from typing import Dict, List, Optional

from flask import current_app
from openai import OpenAI

logger = logging.getLogger(__name__)

MODERATION_CATEGORIES = (
    "sexual",
    "hate",
    "harassment",
    "violence",
    "self-harm",
    "sexual/minors",
    "hate/threatening",
    "violence/graphic",
)


def _get_client() -> Optional[OpenAI]:
    api_key = current_app.config.get("OPENAI_API_KEY")
    if not api_key:
        return None
    return OpenAI(api_key=api_key)


def _require_client() -> OpenAI:
    client = _get_client()
    if client is None:
        raise RuntimeError("OPENAI_API_KEY not configured")
    return client


def generate_product_description(title: str, category: str, condition: str) -> str:
    client = _require_client()

    prompt = f"""Generate a compelling product description for a secondhand marketplace listing.

Product Details:
- Title: {title}
- Category: {category}
- Condition: {condition}

Requirements:
- Write 2-3 paragraphs
- Highlight the item's features and condition
- Use persuasive but honest language
- Keep it concise and engaging
- Focus on value proposition for buyers

Description:"""

    response = client.chat.completions.create(
        model=current_app.config.get("OPENAI_MODEL"),
        messages=[
            {
                "role": "system",
                "content": "You are an expert product copywriter for a secondhand marketplace. "
                           "Write honest, engaging descriptions that help items sell faster.",
            },
            {"role": "user", "content": prompt},
        ],
        temperature=0.7,
        max_tokens=300,
    )
    return (response.choices[0].message.content or "").strip()


def parse_price(text: Optional[str]) -> int:
    """Pull a number out of a model reply: "INR 4,500" -> 4500, garbage -> 0"""
    cleaned = re.sub(r"[^0-9.]", "", text or "")
    try:
        return round(float(cleaned))
    except ValueError:
        return 0


def suggest_price(title: str, category: str, condition: str, description: Optional[str] = None) -> int:
    client = _require_client()

    details = f"- Description: {description}\n" if description else ""
    prompt = f"""As a pricing expert for secondhand marketplaces, suggest a fair market price in INR.

Product Details:
- Title: {title}
- Category: {category}
- Condition: {condition}
{details}
Respond with ONLY a number representing the suggested price in INR. Consider:
- Current market rates for secondhand items
- Item condition
- Category-specific depreciation
- Local market (India)

Price (INR):"""

    response = client.chat.completions.create(
        model=current_app.config.get("OPENAI_MODEL"),
        messages=[
            {
                "role": "system",
                "content": "You are a pricing expert for Indian secondhand marketplaces. "
                           "Provide realistic price suggestions based on current market rates.",
            },
            {"role": "user", "content": prompt},
        ],
        temperature=0.3,
        max_tokens=50,
    )
    return parse_price(response.choices[0].message.content)


def moderate_content(title: str, description: str) -> Dict:
    """
    Returns {"safe": bool, "flags": [...], "confidence": float}.
    Without an API key content is passed through as safe.
    """
    client = _get_client()
    if client is None:
        logger.info("OpenAI not configured, skipping moderation")
        return {"safe": True, "flags": [], "confidence": 1.0}

    moderation = client.moderations.create(input=f"{title}\n\n{description}")
    if not moderation.results:
        return {"safe": True, "flags": [], "confidence": 1.0}

    result = moderation.results[0]
    categories = result.categories.model_dump(by_alias=True)
    scores = result.category_scores.model_dump(by_alias=True)

    flags: List[str] = [name for name in MODERATION_CATEGORIES if categories.get(name)]

    return {
        "safe": not result.flagged,
        "flags": flags,
        "confidence": max((v for v in scores.values() if v is not None), default=0.0),
    }
