"""Tests for experiment definitions and the ready-made experiments."""

from io import StringIO
from unittest.mock import MagicMock

import pytest
from rich.console import Console

import labcoat
from labcoat.core.config import reload_settings
from labcoat.core.errors import BehaviorAlreadyExists
from labcoat.core.experiment import BaseExperiment, Experiment
from labcoat.core.models import CONTROL_NAME
from labcoat.experiments import (
    ConsoleExperiment,
    FeatureFlagExperiment,
    MetricsExperiment,
    render_result,
)
from labcoat.utils.metrics import ExperimentMetrics


class TestExperiment:
    """Tests for the default Experiment."""

    def test_default_name(self):
        assert Experiment().name == "experiment"

    def test_custom_name(self):
        assert Experiment("checkout").name == "checkout"

    def test_defaults(self):
        e = Experiment()
        assert e.is_enabled({}) is True
        assert e.publish({}, MagicMock()) is None

    def test_use_and_try(self):
        e = Experiment()

        def control(ctx):
            return 1

        def candidate(ctx):
            return 2

        e.use(control)
        e.try_("new", candidate)

        assert e.control() is control
        assert e.lookup("new") is candidate
        assert sorted(e.shuffled_names()) == sorted([CONTROL_NAME, "new"])

    def test_use_twice(self):
        e = Experiment()
        e.use(lambda ctx: 1)
        with pytest.raises(BehaviorAlreadyExists):
            e.use(lambda ctx: 2)

    def test_decorators(self):
        e = Experiment("decorated")

        @e.control_behavior
        def control(ctx):
            return "old"

        @e.candidate("new")
        def new(ctx):
            return "old"

        assert e.control() is control
        assert e.lookup("new") is new
        assert labcoat.run(e, error_on_mismatch=True) == "old"

    def test_base_experiment_requires_lookup(self):
        with pytest.raises(TypeError):
            BaseExperiment()

    def test_custom_base_experiment(self):
        class Static(BaseExperiment):
            behaviors = {CONTROL_NAME: lambda ctx: 1, "same": lambda ctx: 1}

            def control(self):
                return self.behaviors[CONTROL_NAME]

            def lookup(self, name):
                return self.behaviors.get(name)

            def shuffled_names(self):
                return list(self.behaviors)

        assert labcoat.run(Static(), error_on_mismatch=True) == 1

    def test_base_experiment_name_from_settings(self, monkeypatch):
        class Named(BaseExperiment):
            def control(self):
                return None

            def lookup(self, name):
                return None

            def shuffled_names(self):
                return []

        assert Named().name == "experiment"

        monkeypatch.setenv("LABCOAT_DEFAULT_EXPERIMENT_NAME", "shadow")
        try:
            reload_settings()
            assert Named().name == "shadow"
            assert Experiment().name == "shadow"
        finally:
            monkeypatch.delenv("LABCOAT_DEFAULT_EXPERIMENT_NAME")
            reload_settings()


class TestFeatureFlagExperiment:
    """Tests for FeatureFlagExperiment."""

    @pytest.fixture
    def features(self):
        return {"new_feature": {1: True, 2: False}}

    def test_enabled_for_listed_user(self, features):
        e = FeatureFlagExperiment(features, "new_feature")
        assert e.is_enabled({"user_id": 1}) is True
        assert e.is_enabled({"user_id": 2}) is True

    def test_disabled_for_unlisted_user(self, features):
        e = FeatureFlagExperiment(features, "new_feature")
        assert e.is_enabled({"user_id": 3}) is False

    def test_disabled_without_subject(self, features):
        e = FeatureFlagExperiment(features, "new_feature")
        assert e.is_enabled({}) is False
        assert e.is_enabled(None) is False

    def test_unknown_flag(self, features):
        e = FeatureFlagExperiment(features, "other_feature")
        assert e.is_enabled({"user_id": 1}) is False

    def test_custom_context_key(self):
        e = FeatureFlagExperiment({"beta": ["acme"]}, "beta", context_key="account")
        assert e.is_enabled({"account": "acme"}) is True

    def test_name_defaults_to_flag(self, features):
        assert FeatureFlagExperiment(features, "new_feature").name == "new_feature"

    def test_candidates_only_run_when_enabled(self, features):
        candidate = MagicMock(return_value=None)
        e = FeatureFlagExperiment(features, "new_feature")
        e.use(lambda ctx: None)
        e.try_("new_feature", candidate)

        labcoat.run(e, {"user_id": 3})
        candidate.assert_not_called()

        labcoat.run(e, {"user_id": 1})
        candidate.assert_called_once()


class TestMetricsExperiment:
    """Tests for MetricsExperiment."""

    def test_records_matched_run(self):
        collector = ExperimentMetrics()
        e = MetricsExperiment("pricing", collector=collector)
        e.use(lambda ctx: 1)
        e.try_("new pricing", lambda ctx: 1)

        labcoat.run(e)

        assert collector.counter("labcoat.pricing.matched") == 1
        timings = collector.get_summary()["timings"]
        assert "labcoat.pricing.control.duration" in timings
        assert "labcoat.pricing.new_pricing.duration" in timings

    def test_records_mismatched_run(self):
        collector = ExperimentMetrics()
        e = MetricsExperiment("pricing", collector=collector)
        e.use(lambda ctx: 1)
        e.try_("new", lambda ctx: 2)

        labcoat.run(e)

        assert collector.counter("labcoat.pricing.mismatched") == 1
        assert collector.counter("labcoat.pricing.matched") == 0

    def test_records_ignored_run(self):
        class IgnoringMetrics(MetricsExperiment):
            def ignore(self, context, control, candidate):
                return True

        collector = ExperimentMetrics()
        e = IgnoringMetrics("pricing", collector=collector)
        e.use(lambda ctx: 1)
        e.try_("new", lambda ctx: 2)

        labcoat.run(e)

        assert collector.counter("labcoat.pricing.ignored") == 1


class TestConsoleExperiment:
    """Tests for console reporting."""

    def test_render_result(self):
        e = MetricsExperiment("render", collector=ExperimentMetrics())
        e.use(lambda ctx: "a")
        e.try_("same", lambda ctx: "a")
        e.try_("different", lambda ctx: "b")

        published = []
        e.publish = lambda context, result: published.append(result)
        labcoat.run(e)

        table = render_result(published[0])
        assert table.row_count == 3

    def test_publish_prints_table(self):
        output = StringIO()
        e = ConsoleExperiment("console", console=Console(file=output, width=120))
        e.use(lambda ctx: "a")
        e.try_("broken", MagicMock(side_effect=RuntimeError("oh no!")))

        assert labcoat.run(e) == "a"

        text = output.getvalue()
        assert "console" in text
        assert "broken" in text
        assert "RuntimeError" in text
