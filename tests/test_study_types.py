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

"""Tests for evgrade.rubric.study_types."""

from __future__ import annotations

import pytest

from evgrade.rubric.data_models import (
    STUDY_TYPE_LABELS,
    CausalMethod,
    FeatureRecord,
    StudyType,
    get_study_type_label,
)
from evgrade.rubric.study_types import (
    STUDY_TYPE_RULES,
    detect_causal_method,
    detect_study_type,
    get_causal_method_indicators,
)


class TestRuleTable:
    def test_priorities_unique_and_descending(self):
        priorities = [r.priority for r in STUDY_TYPE_RULES]
        assert len(priorities) == len(set(priorities))
        assert priorities == sorted(priorities, reverse=True)

    def test_every_study_type_has_label(self):
        for st in StudyType:
            assert st in STUDY_TYPE_LABELS
        assert get_study_type_label(StudyType.RCT) == "Randomized Controlled Trial (RCT)"


class TestDetectStudyType:
    def test_empty_is_unknown(self):
        assert detect_study_type(FeatureRecord()) == StudyType.UNKNOWN

    def test_meta_analysis_beats_systematic_review(self):
        f = FeatureRecord(is_meta_analysis=True, is_systematic_review=True)
        assert detect_study_type(f) == StudyType.META_ANALYSIS

    def test_systematic_review(self):
        assert detect_study_type(FeatureRecord(is_systematic_review=True)) == StudyType.SYSTEMATIC_REVIEW

    def test_review_beats_randomization(self):
        f = FeatureRecord(is_meta_analysis=True, has_randomization=True, has_control_group=True)
        assert detect_study_type(f) == StudyType.META_ANALYSIS

    def test_cluster_rct(self):
        f = FeatureRecord(has_randomization=True, has_control_group=True, has_cluster_design=True)
        assert detect_study_type(f) == StudyType.CLUSTER_RCT

    def test_rct_with_placebo_only(self):
        f = FeatureRecord(has_randomization=True, has_placebo=True)
        assert detect_study_type(f) == StudyType.RCT

    def test_cluster_design_needs_control_group(self):
        f = FeatureRecord(has_randomization=True, has_placebo=True, has_cluster_design=True)
        assert detect_study_type(f) == StudyType.RCT

    @pytest.mark.parametrize("marker, expected", [
        ("has_instrumental_variable", StudyType.QUASI_EXPERIMENTAL_IV),
        ("has_regression_discontinuity", StudyType.QUASI_EXPERIMENTAL_RDD),
        ("has_difference_in_differences", StudyType.QUASI_EXPERIMENTAL_DID),
        ("has_synthetic_control", StudyType.QUASI_EXPERIMENTAL_SYNTHETIC_CONTROL),
    ])
    def test_quasi_marker_excludes_rct(self, marker, expected):
        f = FeatureRecord(has_randomization=True, has_control_group=True, **{marker: True})
        assert detect_study_type(f) == expected

    def test_synthetic_control_beats_rdd(self):
        f = FeatureRecord(has_synthetic_control=True, has_regression_discontinuity=True)
        assert detect_study_type(f) == StudyType.QUASI_EXPERIMENTAL_SYNTHETIC_CONTROL

    def test_event_study_alone(self):
        assert detect_study_type(FeatureRecord(has_event_study=True)) == \
            StudyType.QUASI_EXPERIMENTAL_EVENT_STUDY

    def test_event_study_with_did_is_did(self):
        f = FeatureRecord(has_event_study=True, has_difference_in_differences=True)
        assert detect_study_type(f) == StudyType.QUASI_EXPERIMENTAL_DID

    def test_fixed_effects_with_parallel_trends_is_did(self):
        f = FeatureRecord(has_fixed_effects=True, has_parallel_trends=True)
        assert detect_study_type(f) == StudyType.QUASI_EXPERIMENTAL_DID

    def test_matching(self):
        assert detect_study_type(FeatureRecord(has_matching_psm=True)) == \
            StudyType.QUASI_EXPERIMENTAL_MATCHING

    def test_matching_with_randomization_is_not_matching(self):
        f = FeatureRecord(has_matching_psm=True, has_randomization=True)
        assert detect_study_type(f) == StudyType.UNKNOWN

    def test_cohort(self):
        assert detect_study_type(FeatureRecord(has_baseline=True)) == StudyType.OBSERVATIONAL_COHORT

    def test_cross_sectional_from_sample_size(self):
        f = FeatureRecord(sample_size_numeric=400)
        assert detect_study_type(f) == StudyType.OBSERVATIONAL_CROSS_SECTIONAL

    def test_cross_sectional_from_self_report(self):
        f = FeatureRecord(has_self_report=True)
        assert detect_study_type(f) == StudyType.OBSERVATIONAL_CROSS_SECTIONAL


class TestDetectCausalMethod:
    @pytest.mark.parametrize("study_type, expected", [
        (StudyType.RCT, CausalMethod.RANDOMIZATION),
        (StudyType.CLUSTER_RCT, CausalMethod.RANDOMIZATION),
        (StudyType.QUASI_EXPERIMENTAL_DID, CausalMethod.DIFFERENCE_IN_DIFFERENCES),
        (StudyType.QUASI_EXPERIMENTAL_RDD, CausalMethod.REGRESSION_DISCONTINUITY),
        (StudyType.QUASI_EXPERIMENTAL_IV, CausalMethod.INSTRUMENTAL_VARIABLES),
        (StudyType.SYSTEMATIC_REVIEW, CausalMethod.META_ANALYTIC),
        (StudyType.META_ANALYSIS, CausalMethod.META_ANALYTIC),
    ])
    def test_direct_mapping(self, study_type, expected):
        assert detect_causal_method(FeatureRecord(), study_type) == expected

    def test_fixed_effects_fallback(self):
        f = FeatureRecord(has_fixed_effects=True, has_baseline=True)
        assert detect_causal_method(f, StudyType.OBSERVATIONAL_COHORT) == CausalMethod.FIXED_EFFECTS

    def test_matching_fallback(self):
        f = FeatureRecord(has_matching_psm=True)
        assert detect_causal_method(f, StudyType.UNKNOWN) == CausalMethod.PROPENSITY_SCORE_MATCHING

    def test_observational_defaults_to_selection_on_observables(self):
        assert detect_causal_method(FeatureRecord(), StudyType.OBSERVATIONAL_COHORT) == \
            CausalMethod.SELECTION_ON_OBSERVABLES

    def test_unknown(self):
        assert detect_causal_method(FeatureRecord(), StudyType.UNKNOWN) == CausalMethod.UNKNOWN


class TestIndicators:
    def test_labels_in_fixed_order(self):
        f = FeatureRecord(has_blinding=True, has_randomization=True, has_event_study=True)
        assert get_causal_method_indicators(f) == [
            "randomization mentioned", "blinding", "event study",
        ]

    def test_none(self):
        assert get_causal_method_indicators(FeatureRecord(has_baseline=True)) == []
