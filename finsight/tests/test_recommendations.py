"""
Unit Tests for Recommendation Synthesis
"""

import pytest

from finsight.exceptions import InvalidInputError
from finsight.personas.criteria import (
    HIGH_UTILIZATION, VARIABLE_INCOME, SUBSCRIPTION_HEAVY, SAVINGS_BUILDER, LIFESTYLE_CREEP
)
from finsight.recommend.engine import normalize_title, synthesize_recommendations
from finsight.recommend.templates import PERSONA_ANCHORS, PRIORITY_RANK, HIGH, LOW
from finsight.tests.factories import create_signal_bundle


def _titles(items):
    return [item.title for item in items]


class TestAnchors:
    """Tests that every persona gets its anchor action."""

    @pytest.mark.parametrize("persona", [
        HIGH_UTILIZATION, VARIABLE_INCOME, SUBSCRIPTION_HEAVY, SAVINGS_BUILDER, LIFESTYLE_CREEP
    ])
    def test_anchor_present_without_signals(self, persona):
        items = synthesize_recommendations(persona)

        assert PERSONA_ANCHORS[persona].title in _titles(items)

    def test_personalized_anchor_replaces_template(self):
        signals = create_signal_bundle(utilization=90.0, card_utilizations={"cc": 90.0})
        items = synthesize_recommendations(HIGH_UTILIZATION, signals)
        anchors = [item for item in items if item.title == "Reduce Credit Card Utilization"]

        assert len(anchors) == 1
        assert "90.0%" in anchors[0].description
        assert anchors[0].is_anchor is True

    def test_subscription_anchor_mentions_count(self):
        signals = create_signal_bundle(active_subscriptions=6, monthly_recurring_spend=120.0)
        items = synthesize_recommendations(SUBSCRIPTION_HEAVY, signals)

        assert items[0].title == "Audit Your Subscriptions"
        assert "6 recurring charges" in items[0].description


class TestSynthesis:
    """Tests for item selection, ordering and deduplication."""

    def test_high_utilization_items(self):
        signals = create_signal_bundle(
            utilization=90.0, monthly_interest=45.0, minimum_payment_only=True, is_overdue=True
        )
        titles = _titles(synthesize_recommendations(HIGH_UTILIZATION, signals))

        assert titles == [
            "Reduce Credit Card Utilization",
            "Get Current on Overdue Payments",
            "Reduce Interest Charges",
            "Create a Debt Payoff Plan",
            "Monitor Your Credit Utilization",
        ]

    def test_sorted_by_priority(self):
        signals = create_signal_bundle(emergency_fund_coverage=1.5)
        items = synthesize_recommendations(SAVINGS_BUILDER, signals, secondary=[SUBSCRIPTION_HEAVY])
        ranks = [PRIORITY_RANK[item.priority] for item in items]

        assert ranks == sorted(ranks)
        assert items[0].title == "Audit Your Subscriptions"
        assert items[-1].priority == LOW

    def test_no_duplicate_titles(self):
        signals = create_signal_bundle(active_subscriptions=6, utilization=70.0)
        items = synthesize_recommendations(
            SUBSCRIPTION_HEAVY, signals, secondary=[HIGH_UTILIZATION, SUBSCRIPTION_HEAVY]
        )
        keys = [normalize_title(item.title) for item in items]

        assert len(keys) == len(set(keys))

    def test_secondary_anchors_added(self):
        items = synthesize_recommendations(HIGH_UTILIZATION, secondary=[LIFESTYLE_CREEP, SAVINGS_BUILDER])
        titles = _titles(items)

        assert "Align Savings with Income" in titles
        assert "Continue Building Your Savings" in titles

    def test_rising_discretionary_spend(self):
        signals = create_signal_bundle(discretionary_spend_percent=42.0, discretionary_trend='increasing')
        titles = _titles(synthesize_recommendations(LIFESTYLE_CREEP, signals))

        assert "Watch Rising Discretionary Spending" in titles

    def test_accepts_signal_dict(self):
        signals = create_signal_bundle(cash_flow_buffer=0.8).to_dict()
        titles = _titles(synthesize_recommendations(VARIABLE_INCOME, signals))

        assert "Grow Your Cash Buffer" in titles
        assert titles[0] == "Build Your Emergency Fund"

    def test_unclassified_gets_generic_list(self):
        items = synthesize_recommendations(None)

        assert _titles(items) == [
            "Complete Your Profile", "Optimize Your Financial Health", "Track Your Spending"
        ]
        assert items[0].priority == HIGH

    def test_generic_list_not_mutated(self):
        first = synthesize_recommendations(None)
        first[0].title = "Changed"

        assert synthesize_recommendations(None)[0].title == "Complete Your Profile"

    def test_unknown_persona(self):
        with pytest.raises(InvalidInputError):
            synthesize_recommendations("big_spender")

    def test_unknown_secondary(self):
        with pytest.raises(InvalidInputError):
            synthesize_recommendations(HIGH_UTILIZATION, secondary=["big_spender"])


class TestNormalizeTitle:
    """Tests for title equivalence."""

    def test_case_and_punctuation_ignored(self):
        assert normalize_title("Audit  your subscriptions!") == normalize_title("Audit Your Subscriptions")

    def test_different_titles(self):
        assert normalize_title("Track Your Spending") != normalize_title("Track Your Savings")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
