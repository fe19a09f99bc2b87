import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from tradepost.helpers.revenue_analytics import CategoryAggregate, MarketplaceSummary, analyze_revenue
from tradepost.helpers.revenue_optimizer import (
    AdvisoryError,
    EffortTier,
    ImpactTier,
    Insight,
    PriorityTier,
    Recommendation,
    RevenueOptimizer,
    build_insights_prompt,
    parse_json_array,
)

from fakes import FakeMarketplaceStore

SUMMARY = MarketplaceSummary(
    total_revenue=360,
    total_listings=3,
    active_users=3,
    avg_order_value=120.0,
    conversion_rate=3.0,
    categories={"electronics": CategoryAggregate(revenue=350, listings=2, avg_price=200, conversion=2.5)},
)

INSIGHT = {
    "type": "critical",
    "category": "Revenue Leak",
    "title": "Recover abandoned checkouts",
    "description": "Cart drop-off is elevated.",
    "impact": "+$1,000/month",
    "confidence": 71,
}

RECOMMENDATION = {
    "priority": "urgent",
    "action": "Enable cart recovery nudges",
    "steps": ["Configure emails", "Track recovered revenue"],
    "effort": "Low",
    "timeframe": "3 days",
}


def fake_client(*replies):
    client = MagicMock()
    client.chat.completions.create.side_effect = [
        SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])
        for reply in replies
    ]
    return client


def test_unconfigured_optimizer_uses_fallback():
    optimizer = RevenueOptimizer(api_key=None)

    assert not optimizer.is_configured
    insights = optimizer.generate_insights(SUMMARY)
    recommendations = optimizer.generate_recommendations(insights)

    assert [i.impact for i in insights] == [
        "+$1,200/month", "+$800/month", "+$1,000/month", "+$650/month", "+$400/month",
    ]
    assert [i.type for i in insights] == [
        ImpactTier.HIGH_IMPACT, ImpactTier.MEDIUM_IMPACT, ImpactTier.CRITICAL,
        ImpactTier.HIGH_IMPACT, ImpactTier.MEDIUM_IMPACT,
    ]
    assert [r.priority for r in recommendations] == [
        PriorityTier.URGENT, PriorityTier.HIGH, PriorityTier.HIGH, PriorityTier.MEDIUM,
    ]
    assert recommendations[0].to_dict() == {
        "priority": "urgent",
        "action": "Enable cart recovery nudges",
        "steps": [
            "Configure abandoned cart emails/push with a 10% time-bound coupon",
            "Trigger only after high-intent events (add-to-cart + view checkout)",
            "Track recovered revenue and tune cadence weekly",
        ],
        "effort": "Low",
        "timeframe": "3 days",
    }


def test_fallback_is_deterministic():
    optimizer = RevenueOptimizer()

    first = [i.to_dict() for i in optimizer.generate_insights(SUMMARY)]
    second = [i.to_dict() for i in optimizer.generate_insights(SUMMARY)]
    assert first == second

    insights = optimizer.generate_insights(SUMMARY)
    assert optimizer.generate_recommendations(insights) == optimizer.generate_recommendations(insights)


def test_configured_optimizer_parses_model_json():
    client = fake_client(
        "```json\n" + json.dumps([INSIGHT]) + "\n```",
        json.dumps([RECOMMENDATION]),
    )
    optimizer = RevenueOptimizer(api_key="sk-test", model="gpt-test", client=client)

    insights = optimizer.generate_insights(SUMMARY)
    recommendations = optimizer.generate_recommendations(insights)

    assert insights == [Insight.from_dict(INSIGHT)]
    assert recommendations[0].effort is EffortTier.LOW
    assert recommendations[0].steps == ("Configure emails", "Track recovered revenue")

    first_call = client.chat.completions.create.call_args_list[0]
    assert first_call.kwargs["model"] == "gpt-test"
    assert first_call.kwargs["temperature"] == 0.7
    prompt = first_call.kwargs["messages"][0]["content"]
    assert "Total Revenue: $360" in prompt
    assert "- electronics: $350 revenue, 2 listings" in prompt

    second_prompt = client.chat.completions.create.call_args_list[1].kwargs["messages"][0]["content"]
    assert "1. Recover abandoned checkouts: Cart drop-off is elevated." in second_prompt


def test_configured_optimizer_accepts_empty_list():
    optimizer = RevenueOptimizer(client=fake_client("[]"))

    assert optimizer.generate_insights(SUMMARY) == []


@pytest.mark.parametrize("reply", [
    "Here are your insights!",
    json.dumps({"insights": [INSIGHT]}),
    json.dumps([dict(INSIGHT, type="low-impact")]),
    json.dumps([dict(INSIGHT, confidence=140)]),
    json.dumps([dict(INSIGHT, confidence="high")]),
    json.dumps([{k: v for k, v in INSIGHT.items() if k != "title"}]),
    json.dumps([INSIGHT, "not an object"]),
    json.dumps([dict(INSIGHT, title="x" * 256)]),
    json.dumps([dict(INSIGHT, category="x" * 51)]),
    json.dumps([dict(INSIGHT, impact="+$1,000/month " + "x" * 40)]),
])
def test_malformed_insights_raise(reply):
    optimizer = RevenueOptimizer(client=fake_client(reply))

    with pytest.raises(AdvisoryError):
        optimizer.generate_insights(SUMMARY)


@pytest.mark.parametrize("bad", [
    dict(RECOMMENDATION, priority="whenever"),
    dict(RECOMMENDATION, effort="Huge"),
    dict(RECOMMENDATION, steps="do it"),
    dict(RECOMMENDATION, steps=["ok", 3]),
    dict(RECOMMENDATION, timeframe=""),
])
def test_malformed_recommendations_raise(bad):
    with pytest.raises(AdvisoryError):
        Recommendation.from_dict(bad)


def test_insight_fields_at_column_limits_are_accepted():
    insight = Insight.from_dict(dict(INSIGHT, title="t" * 255, category="c" * 50, impact="i" * 50))

    assert len(insight.title) == 255


def test_overlong_reply_fails_before_any_write():
    store = FakeMarketplaceStore(insights=[dict(INSIGHT, is_active=True)])
    optimizer = RevenueOptimizer(client=fake_client(json.dumps([dict(INSIGHT, title="x" * 300)])))

    with pytest.raises(AdvisoryError):
        analyze_revenue(store, optimizer)

    assert len(store.active_insights) == 1
    assert store.metrics == []
    assert store.commits == 0


def test_free_text_impact_is_accepted():
    insight = Insight.from_dict(dict(INSIGHT, impact="negligible"))
    assert insight.impact == "negligible"


def test_parse_json_array_strips_fences():
    assert parse_json_array("```\n[1, 2]\n```") == [1, 2]
    assert parse_json_array(None) == []


def test_insights_prompt_lists_every_category():
    prompt = build_insights_prompt(SUMMARY)
    assert "Conversion Rate: 3.0%" in prompt
    assert "$200 avg price, 2.5% conversion" in prompt


def test_from_config():
    optimizer = RevenueOptimizer.from_config({"OPENAI_API_KEY": "sk-x", "OPENAI_MODEL": None})

    assert optimizer.is_configured
    assert optimizer.model == "gpt-4o-mini"
