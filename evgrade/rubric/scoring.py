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

"""Component scores, overall grade, and confidence.

External validity, measurement quality and transparency are independent
0–5 heuristics over the feature record.  The internal-validity score is
derived from the risk list, and the overall grade is a weighted sum of
all five components.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from evgrade.rubric.causal_methods import clamp_score, round_half_up
from evgrade.rubric.data_models import (
    EvidenceGrade,
    FeatureRecord,
    RiskItem,
    Severity,
)

logger = logging.getLogger(__name__)

COMPONENT_WEIGHTS: dict[str, float] = {
    "causal": 0.40,
    "internal": 0.25,
    "external": 0.15,
    "measurement": 0.10,
    "transparency": 0.10,
}

# Minimum weighted score for each grade, strongest first
GRADE_THRESHOLDS: tuple[tuple[float, EvidenceGrade], ...] = (
    (4.2, EvidenceGrade.VERY_STRONG),
    (3.4, EvidenceGrade.STRONG),
    (2.5, EvidenceGrade.MODERATE),
    (1.5, EvidenceGrade.WEAK),
)

HIGH_RISK_PENALTY = 1.5
MEDIUM_RISK_PENALTY = 0.5

CONFIDENCE_BASELINE = 0.3
CONFIDENCE_PER_KEYWORD = 0.03
CONFIDENCE_KEYWORD_CAP = 0.3

RECOMMENDED_USE: dict[EvidenceGrade, str] = {
    EvidenceGrade.VERY_STRONG: (
        "Suitable for quantitative decision-making and policy. "
        "High confidence in causal claims."
    ),
    EvidenceGrade.STRONG: (
        "Good basis for directional conclusions. "
        "Quantitative estimates should be treated with some caution."
    ),
    EvidenceGrade.WEAK: (
        "Exploratory or hypothesis-generating only. Not suitable for causal claims "
        "or quantification without substantial additional evidence."
    ),
    EvidenceGrade.VERY_WEAK: (
        "Very limited evidentiary value. Useful only for generating hypotheses. "
        "Do not use for decision-making."
    ),
}
MODERATE_USE_CAUSAL = (
    "Useful for directional insight. "
    "Recommend triangulation with other evidence before quantification."
)
MODERATE_USE_SUGGESTIVE = (
    "Provides suggestive evidence. "
    "Should be combined with other studies before drawing conclusions."
)


def calculate_external_validity(features: FeatureRecord) -> tuple[float, str]:
    """Generalizability score (0–5) and notes."""
    score = 2.5
    notes: list[str] = []

    n = features.sample_size_numeric
    if n is None:
        notes.append("Sample size unknown")
    elif n >= 10_000:
        score += 1.0
        notes.append("Large sample size")
    elif n >= 1_000:
        score += 0.5
        notes.append("Moderate sample size")
    elif n < 100:
        score -= 0.5
        notes.append("Small sample limits generalizability")

    if features.has_external_validity_discussion:
        score += 0.5
        notes.append("External validity explicitly discussed")

    if features.is_meta_analysis or features.is_systematic_review:
        score += 0.5
        notes.append("Review synthesizes multiple studies/contexts")

    return (
        clamp_score(score),
        "; ".join(notes) if notes else "Limited information on generalizability",
    )


def calculate_measurement_quality(features: FeatureRecord) -> tuple[float, str]:
    """Measurement quality score (0–5) and notes."""
    score = 2.5
    notes: list[str] = []

    if features.has_admin_data:
        score += 1.0
        notes.append("Administrative/registry data")
    if features.has_objective_measures:
        score += 0.75
        notes.append("Objective measures")
    if features.has_validated_instruments:
        score += 0.5
        notes.append("Validated instruments")

    if features.has_self_report and not (features.has_objective_measures or features.has_admin_data):
        score -= 0.5
        notes.append("Relies on self-report")

    if not (
        features.has_admin_data
        or features.has_objective_measures
        or features.has_validated_instruments
        or features.has_self_report
    ):
        notes.append("Measurement approach unclear from abstract")

    return (
        clamp_score(score),
        "; ".join(notes) if notes else "Measurement quality unclear",
    )


# (feature field, points, signal) for the transparency score
TRANSPARENCY_SIGNALS: tuple[tuple[str, float, str], ...] = (
    ("has_pre_registration", 1.0, "Pre-registered"),
    ("has_data_availability", 0.75, "Data available"),
    ("has_code_availability", 0.5, "Code available"),
    ("has_consort", 0.5, "CONSORT reporting"),
    ("has_prisma", 0.5, "PRISMA guidelines"),
    ("has_robustness_checks", 0.5, "Robustness checks reported"),
    ("has_sensitivity_analysis", 0.25, "Sensitivity analysis"),
)


def calculate_transparency(features: FeatureRecord) -> tuple[float, list[str]]:
    """Transparency/reproducibility score (0–5) and the signals found.

    Starts low because abstracts rarely disclose much.
    """
    score = 1.5
    signals: list[str] = []
    for name, points, signal in TRANSPARENCY_SIGNALS:
        if getattr(features, name):
            score += points
            signals.append(signal)

    return clamp_score(score), signals or ["No transparency signals detected"]


def calculate_internal_validity_score(risks: Sequence[RiskItem]) -> float:
    """5 minus penalties for high and medium risks, clamped to 0–5."""
    high = sum(1 for r in risks if r.severity == Severity.HIGH)
    medium = sum(1 for r in risks if r.severity == Severity.MEDIUM)
    score = 5.0 - high * HIGH_RISK_PENALTY - medium * MEDIUM_RISK_PENALTY
    return max(0.0, min(5.0, score))


def calculate_weighted_score(
    causal_strength: float,
    risks: Sequence[RiskItem],
    external_validity: float,
    measurement_quality: float,
    transparency: float,
) -> float:
    return (
        causal_strength * COMPONENT_WEIGHTS["causal"]
        + calculate_internal_validity_score(risks) * COMPONENT_WEIGHTS["internal"]
        + external_validity * COMPONENT_WEIGHTS["external"]
        + measurement_quality * COMPONENT_WEIGHTS["measurement"]
        + transparency * COMPONENT_WEIGHTS["transparency"]
    )


def grade_for_score(weighted_score: float) -> EvidenceGrade:
    for threshold, grade in GRADE_THRESHOLDS:
        if weighted_score >= threshold:
            return grade
    return EvidenceGrade.VERY_WEAK


def calculate_overall_grade(
    causal_strength: float,
    risks: Sequence[RiskItem],
    external_validity: float,
    measurement_quality: float,
    transparency: float,
) -> EvidenceGrade:
    """Map the weighted component score onto an :class:`EvidenceGrade`."""
    weighted = calculate_weighted_score(
        causal_strength, risks, external_validity, measurement_quality, transparency,
    )
    grade = grade_for_score(weighted)
    logger.debug("Weighted score %.3f -> %s", weighted, grade.value)
    return grade


def calculate_confidence(features: FeatureRecord) -> float:
    """How much the text told us (0–1), not how right the grade is."""
    confidence = CONFIDENCE_BASELINE
    confidence += min(
        CONFIDENCE_KEYWORD_CAP,
        len(features.matched_keywords) * CONFIDENCE_PER_KEYWORD,
    )

    if features.sample_size_numeric is not None:
        confidence += 0.1

    if (
        features.has_randomization
        or features.has_difference_in_differences
        or features.has_instrumental_variable
        or features.has_regression_discontinuity
        or features.is_meta_analysis
    ):
        confidence += 0.15

    if features.has_robustness_checks:
        confidence += 0.05
    if features.has_pre_registration:
        confidence += 0.05
    if features.has_balance_tests:
        confidence += 0.05

    return max(0.0, min(1.0, round_half_up(confidence, 2)))


def recommended_use(grade: EvidenceGrade, causal_strength: float) -> str:
    """Canned guidance for how the study can be used."""
    if grade == EvidenceGrade.MODERATE:
        return MODERATE_USE_CAUSAL if causal_strength >= 3 else MODERATE_USE_SUGGESTIVE
    return RECOMMENDED_USE[grade]


def sample_size_info(features: FeatureRecord) -> str:
    """Describe the detected sample size (or review study count)."""
    if features.sample_size_numeric is not None:
        info = f"N = {features.sample_size_numeric:,}"
        if features.sample_size_text:
            info += f' (from: "{features.sample_size_text}")'
        return info
    if features.study_count_text:
        return f"Review of {features.study_count_text}"
    return "Sample size not detected in text"
