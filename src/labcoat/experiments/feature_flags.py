"""
Feature-flag gated experiments.

Candidates only run for the users a flag is turned on for; everyone else
gets the control without any experiment overhead.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

import structlog

from labcoat.core.experiment import Experiment

logger = structlog.get_logger()

# flag name -> ids the flag is enabled for. A mapping of id -> bool is
# accepted too; only the presence of the id counts, as with a lookup table.
FeatureTable = Mapping[str, Collection[Any]]


class FeatureFlagExperiment(Experiment):
    """Experiment enabled only for context ids listed under a feature flag."""

    def __init__(
        self,
        features: FeatureTable,
        flag: str,
        context_key: str = "user_id",
        name: str | None = None,
    ):
        super().__init__(name or flag)
        self.features = features
        self.flag = flag
        self.context_key = context_key

    def is_enabled(self, context: Any) -> bool:
        try:
            subject = context[self.context_key]
        except (KeyError, TypeError):
            logger.debug(
                "feature_flag_subject_missing",
                experiment=self.name,
                context_key=self.context_key,
            )
            return False

        return subject in self.features.get(self.flag, ())
