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

"""Tests for evgrade.rubric.scoring."""

from __future__ import annotations

import pytest

from evgrade.rubric.data_models import EvidenceGrade, FeatureRecord, RiskItem, Severity
from evgrade.rubric.scoring import (
    COMPONENT_WEIGHTS,
    MODERATE_USE_CAUSAL,
    MODERATE_USE_SUGGESTIVE,
    RECOMMENDED_USE,
    calculate_confidence,
    calculate_external_validity,
    calculate_internal_validity_score,
    calculate_measurement_quality,
    calculate_overall_grade,
    calculate_transparency,
    grade_for_score,
    recommended_use,
    sample_size_info,
)


def _risks(high=0, medium=0, low=0):
    return (
        [RiskItem("h", Severity.HIGH, "")] * high
        + [RiskItem("m", Severity.MEDIUM, "")] * medium
        + [RiskItem("l", Severity.LOW, "")] * low
    )


class TestWeights:
    def test_sum_to_one(self):
        assert sum(COMPONENT_WEIGHTS.values()) == pytest.approx(1.0)


class TestExternalValidity:
    def test_unknown_sample(self):
        assert calculate_external_validity(FeatureRecord()) == (2.5, "Sample size unknown")

    def test_large_sample_with_discussion(self):
        f = FeatureRecord(sample_size_numeric=20_000, has_external_validity_discussion=True)
        assert calculate_external_validity(f) == (
            4.0, "Large sample size; External validity explicitly discussed",
        )

    def test_small_sample(self):
        score, notes = calculate_external_validity(FeatureRecord(sample_size_numeric=50))
        assert score == 2.0
        assert notes == "Small sample limits generalizability"

    def test_mid_sample_has_no_notes(self):
        score, notes = calculate_external_validity(FeatureRecord(sample_size_numeric=500))
        assert score == 2.5
        assert notes == "Limited information on generalizability"

    def test_review_bonus(self):
        score, notes = calculate_external_validity(FeatureRecord(is_meta_analysis=True))
        assert score == 3.0
        assert "Review synthesizes multiple studies/contexts" in notes


class TestMeasurementQuality:
    def test_unclear(self):
        assert calculate_measurement_quality(FeatureRecord()) == (
            2.5, "Measurement approach unclear from abstract",
        )

    def test_self_report_only(self):
        assert calculate_measurement_quality(FeatureRecord(has_self_report=True)) == (
            2.0, "Relies on self-report",
        )

    def test_self_report_with_admin_data_not_penalised(self):
        score, notes = calculate_measurement_quality(
            FeatureRecord(has_self_report=True, has_admin_data=True),
        )
        assert score == 3.5
        assert "Relies on self-report" not in notes

    def test_all_signals(self):
        f = FeatureRecord(
            has_admin_data=True, has_objective_measures=True, has_validated_instruments=True,
        )
        assert calculate_measurement_quality(f) == (
            4.8, "Administrative/registry data; Objective measures; Validated instruments",
        )


class TestTransparency:
    def test_none(self):
        assert calculate_transparency(FeatureRecord()) == (1.5, ["No transparency signals detected"])

    def test_signals_in_order(self):
        f = FeatureRecord(has_code_availability=True, has_pre_registration=True)
        assert calculate_transparency(f) == (3.0, ["Pre-registered", "Code available"])

    def test_capped(self):
        f = FeatureRecord(
            has_pre_registration=True,
            has_data_availability=True,
            has_code_availability=True,
            has_consort=True,
            has_prisma=True,
            has_robustness_checks=True,
            has_sensitivity_analysis=True,
        )
        score, signals = calculate_transparency(f)
        assert score == 5.0
        assert len(signals) == 7


class TestInternalValidity:
    def test_no_risks(self):
        assert calculate_internal_validity_score([]) == 5.0

    def test_penalties(self):
        assert calculate_internal_validity_score(_risks(high=2, medium=1, low=3)) == 1.5

    def test_floor(self):
        assert calculate_internal_validity_score(_risks(high=4)) == 0.0


class TestGrade:
    @pytest.mark.parametrize("score, grade", [
        (4.2, EvidenceGrade.VERY_STRONG),
        (4.19, EvidenceGrade.STRONG),
        (3.4, EvidenceGrade.STRONG),
        (2.5, EvidenceGrade.MODERATE),
        (1.5, EvidenceGrade.WEAK),
        (1.49, EvidenceGrade.VERY_WEAK),
        (0.0, EvidenceGrade.VERY_WEAK),
    ])
    def test_thresholds(self, score, grade):
        assert grade_for_score(score) == grade

    def test_perfect_components(self):
        assert calculate_overall_grade(5.0, [], 5.0, 5.0, 5.0) == EvidenceGrade.VERY_STRONG

    def test_weak_components(self):
        # 0.4 + 0.5 + 0.375 + 0.25 + 0.15
        grade = calculate_overall_grade(1.0, _risks(high=1, medium=3), 2.5, 2.5, 1.5)
        assert grade == EvidenceGrade.WEAK


class TestConfidence:
    def test_baseline(self):
        assert calculate_confidence(FeatureRecord()) == 0.3

    def test_keyword_bonus_capped(self):
        f = FeatureRecord(matched_keywords=tuple(f"k{i}" for i in range(20)))
        assert calculate_confidence(f) == 0.6

    def test_clamped_to_one(self):
        f = FeatureRecord(
            matched_keywords=tuple(f"k{i}" for i in range(20)),
            sample_size_numeric=100,
            has_randomization=True,
            has_robustness_checks=True,
            has_pre_registration=True,
            has_balance_tests=True,
        )
        assert calculate_confidence(f) == 1.0


class TestRecommendedUse:
    def test_moderate_depends_on_strength(self):
        assert recommended_use(EvidenceGrade.MODERATE, 3.0) == MODERATE_USE_CAUSAL
        assert recommended_use(EvidenceGrade.MODERATE, 2.9) == MODERATE_USE_SUGGESTIVE

    def test_other_grades(self):
        for grade in (EvidenceGrade.VERY_STRONG, EvidenceGrade.WEAK):
            assert recommended_use(grade, 4.0) == RECOMMENDED_USE[grade]


class TestSampleSizeInfo:
    def test_numeric(self):
        f = FeatureRecord(sample_size_numeric=1200, sample_size_text="1,200 children")
        assert sample_size_info(f) == 'N = 1,200 (from: "1,200 children")'

    def test_study_count(self):
        assert sample_size_info(FeatureRecord(study_count_text="45 studies")) == "Review of 45 studies"

    def test_missing(self):
        assert sample_size_info(FeatureRecord()) == "Sample size not detected in text"
