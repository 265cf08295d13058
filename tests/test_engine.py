"""Tests for rule ordering, patterns and the rule engine."""

import math
import time
from datetime import date, datetime, timezone

import numpy as np
import pytest

from synthgen.engine import (
    ModelBackend,
    PlaceholderModel,
    RuleEngine,
    category_multiplier,
    order_rules,
    seasonal_multiplier,
    seasonal_trend,
)
from synthgen.engine.patterns import business_hours_timestamp, parse_timestamp
from synthgen.templates import (
    GenerationRule,
    TemplateCompiler,
    TemporalConstraints,
)


def _rule(field_name: str, deps: list[str] | None = None) -> GenerationRule:
    return GenerationRule(
        field_name=field_name,
        generation_method="random_distribution",
        parameters={"min": 0, "max": 1, "dependencies": deps or []},
    )


# =============================================================================
# Ordering Tests
# =============================================================================


class TestOrderRules:
    """Tests for dependency ordering."""

    def test_dependencies_first(self):
        rules = [_rule("c", ["a", "b"]), _rule("a"), _rule("b", ["a"])]
        ordering = order_rules(rules)
        assert ordering.field_order == ["a", "b", "c"]
        assert ordering.cyclic == ()

    def test_ties_keep_declaration_order(self):
        rules = [_rule("z"), _rule("y"), _rule("x")]
        assert order_rules(rules).field_order == ["z", "y", "x"]

    def test_pass_structure(self):
        """A rule ready in the same pass as its dependency waits for the next pass."""
        rules = [_rule("spend"), _rule("conversions", ["spend"]), _rule("platform")]
        assert order_rules(rules).field_order == ["spend", "platform", "conversions"]

    def test_cycle_falls_back_to_declaration_order(self):
        rules = [_rule("p", ["q"]), _rule("q", ["p"]), _rule("r")]
        ordering = order_rules(rules)
        assert ordering.field_order == ["r", "p", "q"]
        assert ordering.cyclic_fields == ["p", "q"]

    def test_self_dependency_is_cyclic(self):
        ordering = order_rules([_rule("a", ["a"])])
        assert ordering.cyclic_fields == ["a"]

    def test_missing_dependency_is_cyclic(self):
        ordering = order_rules([_rule("a", ["ghost"]), _rule("b")])
        assert ordering.field_order == ["b", "a"]
        assert ordering.cyclic_fields == ["a"]

    def test_extra_dependencies(self):
        """Extra dependencies (e.g. formula variables) are honoured."""
        rules = [_rule("total"), _rule("base")]
        ordering = order_rules(rules, extra_dependencies={"total": {"base"}})
        assert ordering.field_order == ["base", "total"]


# =============================================================================
# Pattern Tests
# =============================================================================


class TestPatterns:
    """Tests for named pattern generators."""

    @pytest.fixture
    def window(self) -> TemporalConstraints:
        return TemporalConstraints(start_date=date(2023, 1, 1), end_date=date(2023, 12, 31))

    def test_business_hours_bias(self, rng, window):
        stamps = [business_hours_timestamp(rng, window) for _ in range(2000)]
        moments = [parse_timestamp(s) for s in stamps]
        in_hours = sum(1 for m in moments if 9 <= m.hour <= 17)
        assert in_hours / len(moments) > 0.75

    def test_business_hours_window_and_format(self, rng, window):
        start = datetime(2023, 1, 1, tzinfo=timezone.utc)
        end = datetime(2023, 12, 31, tzinfo=timezone.utc)
        for _ in range(500):
            stamp = business_hours_timestamp(rng, window)
            assert stamp.endswith("Z")
            assert start <= parse_timestamp(stamp) < end

    def test_seasonal_multiplier_range(self):
        assert seasonal_multiplier(0) == pytest.approx(1.0)
        values = [seasonal_multiplier(d) for d in range(1, 366)]
        assert min(values) >= 0.7 - 1e-9
        assert max(values) <= 1.3 + 1e-9

    def test_seasonal_trend_uses_dependency_date(self, rng, window):
        record = {"posted_at": "2023-04-01T10:00:00.000Z"}
        value = seasonal_trend(rng, window, record, ["posted_at"])
        assert value == pytest.approx(math.sin(2 * math.pi * 91 / 365) * 0.3 + 1)

    def test_seasonal_trend_without_dependency(self, rng, window):
        value = seasonal_trend(rng, window, {}, [])
        assert 0.7 <= value <= 1.3

    def test_category_multiplier_defaults(self):
        assert category_multiplier({"content_type": "video"}, []) == 1.5
        assert category_multiplier({"content_type": "story"}, ["content_type"]) == 0.8
        assert category_multiplier({"content_type": "hologram"}, []) == 1.0
        assert category_multiplier({}, []) == 1.0

    def test_category_multiplier_custom(self):
        record = {"platform": "google_ads"}
        assert category_multiplier(record, ["platform"], {"google_ads": 2.0}) == 2.0


# =============================================================================
# Model Backend Tests
# =============================================================================


class TestPlaceholderModel:
    def test_bounded_output(self, rng):
        rule = GenerationRule(
            field_name="score",
            generation_method="ml_model",
            parameters={"min": 0, "max": 1},
        )
        values = [PlaceholderModel().predict(rule, {}, rng) for _ in range(200)]
        assert all(0 <= v <= 1 for v in values)

    def test_default_range(self, rng):
        rule = GenerationRule(field_name="score", generation_method="ml_model")
        value = PlaceholderModel().predict(rule, {}, rng)
        assert 0 <= value <= 100


# =============================================================================
# Rule Engine Tests
# =============================================================================


class TestRuleEngine:
    """Tests for RuleEngine.generate_record."""

    @pytest.fixture
    def engine(self, lookups, settings) -> RuleEngine:
        return RuleEngine(lookups, settings=settings)

    def test_social_media_record(self, engine, template_registry, rng):
        template = template_registry.get("social_media_content")
        plan = template_registry.get_plan("social_media_content")
        outcome = engine.generate_record(plan, template.constraints, rng, record_index=0)

        record = outcome.record
        assert outcome.failures == []
        assert set(record) == set(template.field_names)
        assert 0 <= record["engagement_rate"] <= 15
        assert 100 <= record["impressions"] <= 50000
        assert record["content_type"] in {"image", "video", "carousel", "story"}
        assert record["posted_at"].endswith("Z")
        assert 0.6 * record["impressions"] <= record["reach"] < record["impressions"]
        assert 0.7 <= record["seasonal_factor"] <= 1.3

    def test_same_seed_same_record(self, engine, template_registry):
        template = template_registry.get("campaign_performance")
        plan = template_registry.get_plan("campaign_performance")
        a = engine.generate_record(plan, template.constraints, np.random.default_rng(3))
        b = engine.generate_record(plan, template.constraints, np.random.default_rng(3))
        assert a.record == b.record

    def test_missing_lookup_table_omits_field(self, engine, make_template, rng):
        template = make_template(
            [
                {
                    "field_name": "kind",
                    "generation_method": "lookup_table",
                    "parameters": {"lookup_source": "no_such_table"},
                }
            ]
        )
        plan = TemplateCompiler().compile(template)
        outcome = engine.generate_record(plan, template.constraints, rng, record_index=4)

        assert "kind" not in outcome.record
        assert len(outcome.failures) == 1
        failure = outcome.failures[0]
        assert failure.field == "kind"
        assert failure.error_type == "LookupTableNotFound"
        assert failure.record_index == 4
        assert failure.fallback_used is False

    def test_infeasible_distribution_falls_back_to_min(self, engine, make_template, rng):
        template = make_template(
            [
                {
                    "field_name": "x",
                    "generation_method": "statistical",
                    "parameters": {"distribution": "normal", "mean": 0, "std_dev": 1, "min": 50, "max": 60},
                }
            ]
        )
        plan = TemplateCompiler().compile(template)
        outcome = engine.generate_record(plan, template.constraints, rng)

        assert outcome.record["x"] == 50
        assert outcome.failures[0].error_type == "DistributionInfeasible"
        assert outcome.failures[0].fallback_used is True

    def test_weighted_lookup_uses_weight_keys(self, engine, make_template, rng):
        template = make_template(
            [
                {
                    "field_name": "platform",
                    "generation_method": "lookup_table",
                    "parameters": {
                        "lookup_source": "campaign_platforms",
                        "weights": {"google_ads": 1.0},
                    },
                }
            ]
        )
        plan = TemplateCompiler().compile(template)
        for _ in range(20):
            outcome = engine.generate_record(plan, template.constraints, rng)
            assert outcome.record["platform"] == "google_ads"

    def test_poisson_rule(self, engine, make_template, rng):
        template = make_template(
            [
                {
                    "field_name": "visits",
                    "generation_method": "statistical",
                    "parameters": {"distribution": "poisson", "mean": 3, "min": 0, "max": 10},
                }
            ]
        )
        plan = TemplateCompiler().compile(template)
        value = engine.generate_record(plan, template.constraints, rng).record["visits"]
        assert isinstance(value, int)
        assert 0 <= value <= 10

    def test_cyclic_formulas_terminate(self, engine, make_template, rng):
        """Mutually dependent formulas fall back instead of hanging."""
        template = make_template(
            [
                {"field_name": "a", "generation_method": "formula", "parameters": {"formula": "b + 1"}},
                {"field_name": "b", "generation_method": "formula", "parameters": {"formula": "a + 1"}},
            ]
        )
        plan = TemplateCompiler(strict_dependencies=False).compile(template)
        assert plan.cyclic_fields == ("a", "b")

        started = time.monotonic()
        outcomes = [engine.generate_record(plan, template.constraints, rng) for _ in range(1000)]
        assert time.monotonic() - started < 5.0

        assert all(o.record == {} for o in outcomes)
        assert [f.field for f in outcomes[0].failures] == ["a", "b"]

    def test_custom_model_backend(self, lookups, settings, make_template, rng):
        class ConstantModel(ModelBackend):
            def predict(self, rule, record, rng):
                return 42

        engine = RuleEngine(lookups, model=ConstantModel(), settings=settings)
        template = make_template([{"field_name": "churn", "generation_method": "ml_model"}])
        plan = TemplateCompiler().compile(template)
        assert engine.generate_record(plan, template.constraints, rng).record == {"churn": 42}

    def test_unexpected_error_stays_in_field(self, lookups, settings, make_template, rng):
        """Any exception from one field is recorded and the rest of the record is built."""

        class BrokenModel(ModelBackend):
            def predict(self, rule, record, rng):
                raise RuntimeError("model offline")

        engine = RuleEngine(lookups, model=BrokenModel(), settings=settings)
        template = make_template(
            [
                {"field_name": "score", "generation_method": "ml_model", "parameters": {"min": 5, "max": 10}},
                {"field_name": "label", "generation_method": "ml_model"},
                {"field_name": "x", "generation_method": "random_distribution", "parameters": {"min": 0, "max": 1}},
            ]
        )
        plan = TemplateCompiler().compile(template)
        outcome = engine.generate_record(plan, template.constraints, rng, record_index=2)

        assert outcome.record["score"] == 5
        assert "label" not in outcome.record
        assert 0 <= outcome.record["x"] <= 1
        assert [f.error_type for f in outcome.failures] == ["RuntimeError", "RuntimeError"]
        assert [f.fallback_used for f in outcome.failures] == [True, False]
