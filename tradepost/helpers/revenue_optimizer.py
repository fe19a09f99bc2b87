"""
Revenue advisory content (insights + recommendations).

Backed by OpenAI chat completions when an API key is configured. Without a key
a fixed canned set is returned so the analytics pipeline keeps working offline
and in tests.

Everything the model sends back is validated into Insight / Recommendation
records here; anything that does not fit raises AdvisoryError.
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class AdvisoryError(ValueError):
    """Generator output could not be parsed into insights/recommendations"""


class ImpactTier(str, Enum):
    HIGH_IMPACT = "high-impact"
    MEDIUM_IMPACT = "medium-impact"
    CRITICAL = "critical"


class PriorityTier(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"


class EffortTier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Column sizes of revenue_insights; longer values would fail on insert
INSIGHT_CATEGORY_MAX = 50
INSIGHT_TITLE_MAX = 255
INSIGHT_IMPACT_MAX = 50


def _require_text(data: dict, key: str, max_len: Optional[int] = None) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise AdvisoryError(f"Missing or empty '{key}'")
    value = value.strip()
    if max_len is not None and len(value) > max_len:
        raise AdvisoryError(f"'{key}' longer than {max_len} characters")
    return value


def _require_tier(enum_cls, data: dict, key: str):
    try:
        return enum_cls(data.get(key))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise AdvisoryError(f"Invalid '{key}': {data.get(key)!r} (expected one of {allowed})")


@dataclass(frozen=True)
class Insight:
    type: ImpactTier
    category: str
    title: str
    description: str
    impact: str
    confidence: int

    @classmethod
    def from_dict(cls, data) -> "Insight":
        if not isinstance(data, dict):
            raise AdvisoryError(f"Insight must be an object, got {type(data).__name__}")

        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise AdvisoryError(f"Invalid 'confidence': {confidence!r}")
        if not 0 <= confidence <= 100:
            raise AdvisoryError(f"'confidence' out of range: {confidence}")

        # impact is free text; unparseable amounts count as $0 in the metrics
        impact = data.get("impact")
        if not isinstance(impact, str):
            raise AdvisoryError(f"Invalid 'impact': {impact!r}")
        if len(impact) > INSIGHT_IMPACT_MAX:
            raise AdvisoryError(f"'impact' longer than {INSIGHT_IMPACT_MAX} characters")

        return cls(
            type=_require_tier(ImpactTier, data, "type"),
            category=_require_text(data, "category", INSIGHT_CATEGORY_MAX),
            title=_require_text(data, "title", INSIGHT_TITLE_MAX),
            description=_require_text(data, "description"),
            impact=impact,
            confidence=int(round(confidence)),
        )

    def to_dict(self) -> Dict:
        return {
            "type": self.type.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class Recommendation:
    priority: PriorityTier
    action: str
    steps: tuple
    effort: EffortTier
    timeframe: str

    @classmethod
    def from_dict(cls, data) -> "Recommendation":
        if not isinstance(data, dict):
            raise AdvisoryError(f"Recommendation must be an object, got {type(data).__name__}")

        steps = data.get("steps")
        if not isinstance(steps, list) or not all(isinstance(step, str) for step in steps):
            raise AdvisoryError(f"Invalid 'steps': {steps!r}")

        return cls(
            priority=_require_tier(PriorityTier, data, "priority"),
            action=_require_text(data, "action"),
            steps=tuple(steps),
            effort=_require_tier(EffortTier, data, "effort"),
            timeframe=_require_text(data, "timeframe"),
        )

    def to_dict(self) -> Dict:
        return {
            "priority": self.priority.value,
            "action": self.action,
            "steps": list(self.steps),
            "effort": self.effort.value,
            "timeframe": self.timeframe,
        }


# ==================== OFFLINE FALLBACK ====================

FALLBACK_INSIGHTS = (
    {
        "type": "high-impact",
        "category": "Pricing",
        "title": "Raise prices on high-converting categories",
        "description": "Your conversion is healthy; a 5-8% price test on top 2 categories can lift revenue without hurting volume.",
        "impact": "+$1,200/month",
        "confidence": 82,
    },
    {
        "type": "medium-impact",
        "category": "Inventory",
        "title": "Restock fast-moving listings",
        "description": "Several items show strong demand signals (views vs. supply). Prioritize restock/duplicates for those SKUs.",
        "impact": "+$800/month",
        "confidence": 78,
    },
    {
        "type": "critical",
        "category": "Revenue Leak",
        "title": "Recover abandoned checkouts",
        "description": "Cart drop-off is elevated; enable follow-up nudges or limited-time coupons for recent abandoners.",
        "impact": "+$1,000/month",
        "confidence": 71,
    },
    {
        "type": "high-impact",
        "category": "Marketing",
        "title": "Cross-sell complementary items",
        "description": "Bundle frequently co-viewed items and recommend during checkout to raise AOV.",
        "impact": "+$650/month",
        "confidence": 75,
    },
    {
        "type": "medium-impact",
        "category": "User Acquisition",
        "title": "Feature top-rated sellers",
        "description": "Spotlight trusted sellers on landing pages to improve first-time buyer conversion.",
        "impact": "+$400/month",
        "confidence": 69,
    },
)

FALLBACK_RECOMMENDATIONS = (
    {
        "priority": "urgent",
        "action": "Enable cart recovery nudges",
        "steps": [
            "Configure abandoned cart emails/push with a 10% time-bound coupon",
            "Trigger only after high-intent events (add-to-cart + view checkout)",
            "Track recovered revenue and tune cadence weekly",
        ],
        "effort": "Low",
        "timeframe": "3 days",
    },
    {
        "priority": "high",
        "action": "Run 5-8% price test on top categories",
        "steps": [
            "Select top 2 categories by conversion",
            "A/B test current vs +5-8% price for 7-14 days",
            "Keep lift if revenue and conversion stay neutral/positive",
        ],
        "effort": "Medium",
        "timeframe": "2 weeks",
    },
    {
        "priority": "high",
        "action": "Cross-sell bundles on PDP and checkout",
        "steps": [
            "Identify frequently co-viewed/co-purchased items",
            "Add \"Frequently Bought Together\" modules on PDP/checkout",
            "Measure AOV and attach rate after rollout",
        ],
        "effort": "Medium",
        "timeframe": "2 weeks",
    },
    {
        "priority": "medium",
        "action": "Feature trusted sellers to boost first-time conversion",
        "steps": [
            "Surface top-rated sellers on homepage/category pages",
            "Add trust badges on their listings",
            "Monitor first-time buyer conversion delta",
        ],
        "effort": "Low",
        "timeframe": "1 week",
    },
)


# ==================== PROMPTS ====================

def build_insights_prompt(summary) -> str:
    category_lines = "\n".join(
        f"- {name}: ${cat.revenue} revenue, {cat.listings} listings, "
        f"${cat.avg_price} avg price, {cat.conversion}% conversion"
        for name, cat in summary.categories.items()
    )

    return f"""You are a marketplace revenue optimization expert. Analyze this data and provide 5 actionable insights:

Marketplace Data:
- Total Revenue: ${summary.total_revenue}
- Total Listings: {summary.total_listings}
- Active Users: {summary.active_users}
- Average Order Value: ${summary.avg_order_value}
- Conversion Rate: {summary.conversion_rate}%

Category Breakdown:
{category_lines}

Provide insights in this EXACT JSON format (no markdown, no backticks):
[
  {{
    "type": "high-impact|medium-impact|critical",
    "category": "Pricing|Inventory|Marketing|User Acquisition|Revenue Leak",
    "title": "Brief title",
    "description": "Detailed actionable description",
    "impact": "+$X,XXX/month",
    "confidence": 85
  }}
]

Focus on: dynamic pricing, inventory optimization, conversion improvements, cart recovery, cross-selling."""


def build_recommendations_prompt(insights: Sequence[Insight]) -> str:
    numbered = "\n".join(
        f"{idx}. {insight.title}: {insight.description}"
        for idx, insight in enumerate(insights, start=1)
    )

    return f"""Based on these insights, create 4 prioritized action recommendations:

{numbered}

Provide recommendations in this EXACT JSON format (no markdown, no backticks):
[
  {{
    "priority": "urgent|high|medium",
    "action": "Action title",
    "steps": ["Step 1", "Step 2", "Step 3"],
    "effort": "Low|Medium|High",
    "timeframe": "X days|X weeks"
  }}
]"""


def parse_json_array(content: Optional[str]) -> List:
    """Parse a model reply that should be a bare JSON array"""
    text = (content or "[]").strip()

    # Clean markdown
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise AdvisoryError(f"Model reply is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise AdvisoryError(f"Expected a JSON array, got {type(parsed).__name__}")
    return parsed


class RevenueOptimizer:
    """Insight/recommendation generator with a deterministic offline fallback."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self._client = client

    @classmethod
    def from_config(cls, config) -> "RevenueOptimizer":
        return cls(api_key=config.get("OPENAI_API_KEY"), model=config.get("OPENAI_MODEL"))

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _complete(self, prompt: str) -> str:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)

        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.7,
        )
        return response.choices[0].message.content or "[]"

    def generate_insights(self, summary) -> List[Insight]:
        if not self.is_configured:
            logger.info("OpenAI not configured, using fallback revenue insights")
            return [Insight.from_dict(data) for data in FALLBACK_INSIGHTS]

        content = self._complete(build_insights_prompt(summary))
        insights = [Insight.from_dict(data) for data in parse_json_array(content)]
        logger.info(f"Generated {len(insights)} revenue insights with {self.model}")
        return insights

    def generate_recommendations(self, insights: Sequence[Insight]) -> List[Recommendation]:
        if not self.is_configured:
            logger.info("OpenAI not configured, using fallback recommendations")
            return [Recommendation.from_dict(data) for data in FALLBACK_RECOMMENDATIONS]

        content = self._complete(build_recommendations_prompt(insights))
        recommendations = [Recommendation.from_dict(data) for data in parse_json_array(content)]
        logger.info(f"Generated {len(recommendations)} recommendations with {self.model}")
        return recommendations
