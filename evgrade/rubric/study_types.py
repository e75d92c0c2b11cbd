# evgrade — rule-based evidence strength classification for study texts
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Study-type and causal-method detection.

Study types are resolved from an explicit priority-ordered rule list:
rules are evaluated from highest to lowest priority and the first whose
predicate holds wins.  The predicates encode mutual exclusion themselves
(e.g. the RCT rules reject texts that also name an instrument), so the
ordering is part of the classification logic and must not be shuffled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from evgrade.rubric.data_models import (
    OBSERVATIONAL_TYPES,
    CausalMethod,
    FeatureRecord,
    StudyType,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudyTypeRule:
    study_type: StudyType
    priority: int
    check: Callable[[FeatureRecord], bool]


def _no_quasi_markers(f: FeatureRecord) -> bool:
    """True when no IV / RDD / DiD / synthetic-control language is present."""
    return not (
        f.has_instrumental_variable
        or f.has_regression_discontinuity
        or f.has_difference_in_differences
        or f.has_synthetic_control
    )


def _no_experimental_markers(f: FeatureRecord) -> bool:
    return not (
        f.has_randomization
        or f.has_difference_in_differences
        or f.has_instrumental_variable
        or f.has_regression_discontinuity
    )


STUDY_TYPE_RULES: tuple[StudyTypeRule, ...] = (
    # Reviews
    StudyTypeRule(StudyType.META_ANALYSIS, 100, lambda f: f.is_meta_analysis),
    StudyTypeRule(
        StudyType.SYSTEMATIC_REVIEW, 95,
        lambda f: f.is_systematic_review and not f.is_meta_analysis,
    ),
    # Randomised designs (cluster first)
    StudyTypeRule(
        StudyType.CLUSTER_RCT, 90,
        lambda f: (
            f.has_randomization
            and f.has_control_group
            and f.has_cluster_design
            and _no_quasi_markers(f)
        ),
    ),
    StudyTypeRule(
        StudyType.RCT, 85,
        lambda f: (
            f.has_randomization
            and (f.has_control_group or f.has_placebo)
            and _no_quasi_markers(f)
        ),
    ),
    # Quasi-experimental, most specific first
    StudyTypeRule(
        StudyType.QUASI_EXPERIMENTAL_SYNTHETIC_CONTROL, 80,
        lambda f: f.has_synthetic_control,
    ),
    StudyTypeRule(
        StudyType.QUASI_EXPERIMENTAL_RDD, 75,
        lambda f: f.has_regression_discontinuity,
    ),
    StudyTypeRule(
        StudyType.QUASI_EXPERIMENTAL_IV, 70,
        lambda f: f.has_instrumental_variable,
    ),
    StudyTypeRule(
        StudyType.QUASI_EXPERIMENTAL_EVENT_STUDY, 65,
        lambda f: f.has_event_study and not f.has_difference_in_differences,
    ),
    StudyTypeRule(
        StudyType.QUASI_EXPERIMENTAL_DID, 60,
        lambda f: (
            f.has_difference_in_differences
            or (f.has_fixed_effects and f.has_parallel_trends)
        ),
    ),
    StudyTypeRule(
        StudyType.QUASI_EXPERIMENTAL_MATCHING, 55,
        lambda f: f.has_matching_psm and not f.has_randomization,
    ),
    # Observational
    StudyTypeRule(
        StudyType.OBSERVATIONAL_COHORT, 40,
        lambda f: f.has_baseline and _no_experimental_markers(f),
    ),
    StudyTypeRule(
        StudyType.OBSERVATIONAL_CROSS_SECTIONAL, 30,
        lambda f: (
            _no_experimental_markers(f)
            and not f.has_baseline
            and (f.sample_size_numeric is not None or f.has_self_report)
        ),
    ),
)


def detect_study_type(features: FeatureRecord) -> StudyType:
    """Return the study type of the highest-priority matching rule."""
    for rule in sorted(STUDY_TYPE_RULES, key=lambda r: r.priority, reverse=True):
        if rule.check(features):
            logger.debug("Study type: %s (priority %d)", rule.study_type.value, rule.priority)
            return rule.study_type
    return StudyType.UNKNOWN


# Study type → causal method for designs with an identification strategy
STUDY_TYPE_TO_METHOD: dict[StudyType, CausalMethod] = {
    StudyType.RCT: CausalMethod.RANDOMIZATION,
    StudyType.CLUSTER_RCT: CausalMethod.RANDOMIZATION,
    StudyType.QUASI_EXPERIMENTAL_DID: CausalMethod.DIFFERENCE_IN_DIFFERENCES,
    StudyType.QUASI_EXPERIMENTAL_RDD: CausalMethod.REGRESSION_DISCONTINUITY,
    StudyType.QUASI_EXPERIMENTAL_IV: CausalMethod.INSTRUMENTAL_VARIABLES,
    StudyType.QUASI_EXPERIMENTAL_MATCHING: CausalMethod.PROPENSITY_SCORE_MATCHING,
    StudyType.QUASI_EXPERIMENTAL_SYNTHETIC_CONTROL: CausalMethod.SYNTHETIC_CONTROL,
    StudyType.QUASI_EXPERIMENTAL_EVENT_STUDY: CausalMethod.EVENT_STUDY,
    StudyType.META_ANALYSIS: CausalMethod.META_ANALYTIC,
    StudyType.SYSTEMATIC_REVIEW: CausalMethod.META_ANALYTIC,
}


def detect_causal_method(features: FeatureRecord, study_type: StudyType) -> CausalMethod:
    """Map a study type to its causal method, falling back on features.

    Types without a table entry check fixed effects, then matching; plain
    observational designs otherwise rely on selection on observables.
    """
    method = STUDY_TYPE_TO_METHOD.get(study_type)
    if method is not None:
        return method

    if features.has_fixed_effects:
        return CausalMethod.FIXED_EFFECTS
    if features.has_matching_psm:
        return CausalMethod.PROPENSITY_SCORE_MATCHING

    if study_type in OBSERVATIONAL_TYPES:
        return CausalMethod.SELECTION_ON_OBSERVABLES

    return CausalMethod.UNKNOWN


# (feature field, label) in reporting order
CAUSAL_METHOD_INDICATORS: tuple[tuple[str, str], ...] = (
    ("has_randomization", "randomization mentioned"),
    ("has_control_group", "control group"),
    ("has_placebo", "placebo/sham"),
    ("has_blinding", "blinding"),
    ("has_difference_in_differences", "difference-in-differences"),
    ("has_parallel_trends", "parallel trends"),
    ("has_fixed_effects", "fixed effects"),
    ("has_instrumental_variable", "instrumental variable"),
    ("has_regression_discontinuity", "regression discontinuity"),
    ("has_matching_psm", "matching/PSM"),
    ("has_synthetic_control", "synthetic control"),
    ("has_event_study", "event study"),
)


def get_causal_method_indicators(features: FeatureRecord) -> list[str]:
    """Labels of every method-relevant feature found in the text."""
    return [label for name, label in CAUSAL_METHOD_INDICATORS if getattr(features, name)]
