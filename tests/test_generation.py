"""Tests for the generation orchestrator."""

import math
import time

import pytest

from synthgen.core.config import Settings
from synthgen.core.exceptions import TemplateNotFound
from synthgen.engine import ModelBackend
from synthgen.generation import GenerationOptions, GenerationOrchestrator
from synthgen.validation import PolicyRegistry


# =============================================================================
# Determinism
# =============================================================================


class TestDeterminism:
    """Same seed, same batch."""

    def test_same_seed_same_output(self, orchestrator):
        a = orchestrator.generate("social_media_content", 50, {"seed": 7})
        b = orchestrator.generate("social_media_content", 50, {"seed": 7})
        assert a.data == b.data
        assert a.quality_metrics == b.quality_metrics
        assert a.generation_id != b.generation_id

    def test_different_seed_different_output(self, orchestrator):
        a = orchestrator.generate("social_media_content", 20, {"seed": 1})
        b = orchestrator.generate("social_media_content", 20, {"seed": 2})
        assert a.data != b.data

    def test_unseeded_run_records_seed(self, orchestrator):
        first = orchestrator.generate("campaign_performance", 10)
        assert first.seed is not None
        assert first.metadata.lineage.generation_parameters["seed"] == first.seed

        replay = orchestrator.generate("campaign_performance", 10, {"seed": first.seed})
        assert replay.data == first.data

    def test_parallel_matches_sequential(self, orchestrator):
        sequential = orchestrator.generate("customer_analytics", 40, {"seed": 99})
        parallel = orchestrator.generate(
            "customer_analytics", 40, GenerationOptions(seed=99, max_workers=4)
        )
        assert parallel.data == sequential.data


# =============================================================================
# Batch Contents
# =============================================================================


class TestBatchContents:
    """Tests for the records and counts in a result."""

    def test_campaign_scenario(self, orchestrator):
        result = orchestrator.generate("campaign_performance", 1000, {"seed": 42})

        assert result.template_used == "campaign_performance"
        assert result.generated_records == len(result.data) == 1000
        for record in result.data:
            spend = record["spend"]
            conversions = record["conversions"]
            assert 100 <= spend <= 10000
            assert math.floor(spend * 0.01) <= conversions <= spend * 0.04
            assert record["roi"] == pytest.approx(((conversions * 50 - spend) / spend) * 100)
            assert record["platform"].endswith("_ads")

        rule_order = result.metadata.lineage.generation_parameters["rule_order"]
        assert rule_order.index("spend") < rule_order.index("conversions") < rule_order.index("roi")

    def test_counts_add_up(self, orchestrator):
        result = orchestrator.generate("social_media_content", 200, {"seed": 5})
        validation = result.validation_results
        assert validation.attempted_records == 200
        assert validation.passed_validations + validation.failed_validations == 200
        assert validation.passed_validations == result.generated_records
        assert validation.overall_validity == pytest.approx(
            validation.passed_validations / 200, abs=1e-4
        )

    def test_bounds_hold(self, orchestrator):
        result = orchestrator.generate("social_media_content", 200, {"seed": 8})
        for record in result.data:
            assert 0 <= record["engagement_rate"] <= 15
            assert 100 <= record["impressions"] <= 50000
            assert record["reach"] < record["impressions"]

    def test_range_rejections(self, orchestrator, make_template, uniform_rule):
        rule = uniform_rule("x", 0, 10)
        rule["validation_rules"] = [{"rule_type": "range", "rule_expression": "0,5"}]
        orchestrator.register_template(make_template([rule], template_id="half_valid"))

        result = orchestrator.generate("half_valid", 100, {"seed": 3})
        validation = result.validation_results
        assert 0 < validation.failed_validations < 100
        assert all(e.field == "x" for e in validation.validation_errors)
        assert len(validation.validation_errors) == validation.failed_validations
        assert all(r["x"] <= 5 for r in result.data)

    def test_zero_records(self, orchestrator):
        result = orchestrator.generate("campaign_performance", 0, {"seed": 1})
        assert result.data == []
        assert result.validation_results.attempted_records == 0
        assert result.validation_results.overall_validity == 1.0
        assert result.quality_metrics.sample_size == 0

    def test_synthetic_markers(self, orchestrator):
        result = orchestrator.generate("campaign_performance", 5, {"seed": 1})
        for index, record in enumerate(result.data):
            assert record["_synthetic"] is True
            assert record["_template_id"] == "campaign_performance"
            assert record["_record_index"] == index
            assert record["_confidence_score"] == 1.0

    def test_markers_disabled(self, orchestrator, make_template, uniform_rule):
        orchestrator.register_template(
            make_template(
                [uniform_rule("x")],
                template_id="plain",
                metadata_config={
                    "synthetic_markers": False,
                    "confidence_scoring": False,
                    "lineage_tracking": False,
                    "quality_metrics": False,
                },
            )
        )
        result = orchestrator.generate("plain", 5, {"seed": 1})
        assert all(set(r) == {"x"} for r in result.data)
        assert result.metadata.lineage is None
        assert result.quality_metrics is None


# =============================================================================
# Options
# =============================================================================


class TestOptions:
    """Tests for per-call overrides, workers and deadlines."""

    def test_custom_temporal_window(self, orchestrator):
        result = orchestrator.generate(
            "social_media_content",
            100,
            {
                "seed": 4,
                "custom_constraints": {
                    "temporal_constraints": {"start_date": "2023-03-01", "end_date": "2023-03-31"}
                },
            },
        )
        for record in result.data:
            assert "2023-03-01" <= record["posted_at"][:10] <= "2023-03-30"
        constraints = result.metadata.lineage.generation_parameters["constraints"]
        assert constraints["temporal_constraints"]["start_date"] == "2023-03-01"

    def test_quality_overrides(self, orchestrator):
        result = orchestrator.generate(
            "campaign_performance",
            50,
            {"seed": 2, "quality_overrides": {"realism_score_target": 0.1}},
        )
        assert result.quality_metrics.targets_met["realism"] is True
        params = result.metadata.lineage.generation_parameters["quality_parameters"]
        assert params["realism_score_target"] == 0.1

    def test_invalid_override_rejected(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.generate(
                "campaign_performance", 5, {"custom_constraints": {"spatial_constraints": {}}}
            )

    def test_deadline(self, orchestrator):
        result = orchestrator.generate(
            "social_media_content", 200, {"seed": 1, "deadline_seconds": 1e-9}
        )
        assert result.deadline_exceeded is True
        assert result.validation_results.attempted_records < 200

    def test_no_deadline_by_default(self, orchestrator):
        result = orchestrator.generate("campaign_performance", 10, {"seed": 1})
        assert result.deadline_exceeded is False


# =============================================================================
# Errors and Fallbacks
# =============================================================================


class TestErrors:
    """Tests for error propagation and per-field fallbacks."""

    def test_unknown_template(self, orchestrator):
        with pytest.raises(TemplateNotFound):
            orchestrator.generate("nope", 10)

    def test_negative_count(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.generate("campaign_performance", -1)

    def test_fallback_confidence(self, orchestrator, make_template, uniform_rule):
        orchestrator.register_template(
            make_template(
                [
                    {
                        "field_name": "x",
                        "generation_method": "statistical",
                        "parameters": {
                            "distribution": "normal",
                            "mean": 0,
                            "std_dev": 1,
                            "min": 50,
                            "max": 60,
                        },
                    },
                    uniform_rule("y"),
                ],
                template_id="infeasible",
            )
        )
        result = orchestrator.generate("infeasible", 3, {"seed": 1})

        assert result.generated_records == 3
        assert all(r["x"] == 50 and r["_confidence_score"] == 0.5 for r in result.data)
        indicators = result.metadata.quality_indicators
        assert indicators.confidence_scores == {"x": 0.0, "y": 1.0}
        assert len(result.validation_results.generation_errors) == 3

    def test_cyclic_template_completes(self, orchestrator, make_template, uniform_rule):
        """Mutually dependent formulas fall back and the batch finishes promptly."""
        orchestrator.register_template(
            make_template(
                [
                    {"field_name": "a", "generation_method": "formula", "parameters": {"formula": "b + 1"}},
                    {"field_name": "b", "generation_method": "formula", "parameters": {"formula": "a + 1"}},
                    uniform_rule("c"),
                ],
                template_id="cyclic",
            )
        )
        started = time.monotonic()
        result = orchestrator.generate("cyclic", 1000, {"seed": 1})
        elapsed = time.monotonic() - started

        assert elapsed < 5.0
        assert result.generated_records == 1000
        assert all("a" not in r and "c" in r for r in result.data)
        params = result.metadata.lineage.generation_parameters
        assert params["cyclic_fields"] == ["a", "b"]
        assert params["rule_order"] == ["c", "a", "b"]

    def test_model_error_falls_back_per_field(self, settings, make_template):
        """A failing model backend costs the field, not the record."""

        class BrokenModel(ModelBackend):
            def predict(self, rule, record, rng):
                raise RuntimeError("model offline")

        orchestrator = GenerationOrchestrator.with_builtins(settings=settings, model=BrokenModel())
        orchestrator.register_template(
            make_template(
                [{"field_name": "score", "generation_method": "ml_model", "parameters": {"min": 5, "max": 10}}],
                template_id="ml",
            )
        )
        result = orchestrator.generate("ml", 3, {"seed": 1})

        assert result.generated_records == 3
        assert all(r["score"] == 5 for r in result.data)
        validation = result.validation_results
        assert validation.failed_validations == 0
        assert [f.error_type for f in validation.generation_errors] == ["RuntimeError"] * 3
        assert all(f.fallback_used for f in validation.generation_errors)

    def test_model_error_on_builtin_template(self, settings):
        class BrokenModel(ModelBackend):
            def predict(self, rule, record, rng):
                raise RuntimeError("model offline")

        orchestrator = GenerationOrchestrator.with_builtins(settings=settings, model=BrokenModel())
        result = orchestrator.generate("customer_analytics", 4, {"seed": 1})

        assert result.generated_records == 4
        assert all(r["churn_propensity"] == 0 for r in result.data)

    def test_validator_error_rejects_record(self, make_template, uniform_rule):
        """An error raised while validating rejects that record only."""

        def exploding_policy(field, record):
            raise RuntimeError("policy store unavailable")

        policies = PolicyRegistry()
        policies.register("must_match_store", exploding_policy)
        orchestrator = GenerationOrchestrator.with_builtins(policies=policies)
        rule = uniform_rule("x")
        rule["validation_rules"] = [{"rule_type": "business_logic", "rule_expression": "must_match_store"}]
        orchestrator.register_template(make_template([rule], template_id="guarded"))

        result = orchestrator.generate("guarded", 4, {"seed": 1})

        assert result.generated_records == 0
        validation = result.validation_results
        assert validation.failed_validations == 4
        assert validation.overall_validity == 0.0
        assert {e.field for e in validation.validation_errors} == {"record_validation"}
        assert all("policy store unavailable" in e.error_message for e in validation.validation_errors)

    def test_infinite_values_still_yield_result(self, orchestrator, make_template, uniform_rule):
        """Overflowing formulas do not break quality scoring."""
        orchestrator.register_template(
            make_template(
                [
                    uniform_rule("x", 1, 2),
                    {"field_name": "y", "generation_method": "formula", "parameters": {"formula": "x * 1e308 * 10"}},
                ],
                template_id="overflow",
                constraints={
                    "temporal_constraints": {"start_date": "2024-01-01", "end_date": "2024-12-31"},
                    "business_constraints": {"correlation_requirements": {"y": ["x"]}},
                },
            )
        )
        result = orchestrator.generate("overflow", 5, {"seed": 1})

        assert result.generated_records == 5
        assert all(math.isinf(r["y"]) for r in result.data)
        metrics = result.quality_metrics
        assert 0.0 <= metrics.correlation_preservation_score <= 1.0
        assert "y" not in result.metadata.quality_indicators.uncertainty_measures

    def test_string_formula_input_falls_back(self, orchestrator, make_template):
        orchestrator.register_template(
            make_template(
                [
                    {
                        "field_name": "kind",
                        "generation_method": "lookup_table",
                        "parameters": {"lookup_source": "content_types"},
                    },
                    {"field_name": "boost", "generation_method": "formula", "parameters": {"formula": "kind * 2000000"}},
                ],
                template_id="stringy",
            )
        )
        result = orchestrator.generate("stringy", 5, {"seed": 1})

        assert result.generated_records == 5
        assert all("boost" not in r for r in result.data)
        errors = result.validation_results.generation_errors
        assert {e.error_type for e in errors} == {"FormulaEvaluationError"}


# =============================================================================
# History
# =============================================================================


class TestHistory:
    """Tests for get_generation_summary."""

    def test_empty_summary(self, orchestrator):
        summary = orchestrator.get_generation_summary()
        assert summary.total_generations == 0
        assert summary.recent_generations == []

    def test_totals_and_retention(self):
        orchestrator = GenerationOrchestrator.with_builtins(settings=Settings(history_size=2))
        orchestrator.generate("campaign_performance", 5, {"seed": 1})
        orchestrator.generate("customer_analytics", 6, {"seed": 1})
        last = orchestrator.generate("social_media_content", 7, {"seed": 1})

        summary = orchestrator.get_generation_summary()
        assert summary.total_generations == 3
        assert summary.total_records_generated >= 11
        assert len(summary.recent_generations) == 2
        assert summary.recent_generations[0].generation_id == last.generation_id
        assert summary.templates_used == ["customer_analytics", "social_media_content"]
        assert 0.0 < summary.average_realism_score <= 1.0
