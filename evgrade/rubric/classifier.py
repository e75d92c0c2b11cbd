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

"""End-to-end evidence classification.

Pipeline (every stage is a pure function of its inputs):

1. Feature extraction from the raw text
2. Study-type detection (priority-ordered rules)
3. Causal-method detection
4. Causal-strength scoring against the method rubric
5. Internal-validity threat identification
6. Component scores, overall grade, confidence and guidance

Usage::

    from evgrade.rubric import classify

    result = classify(abstract)
    print(result.overall_evidence_grade.value, result.causal_strength)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from evgrade.rubric.causal_methods import assess_causal_strength
from evgrade.rubric.data_models import (
    ClassificationResult,
    ClassifierSettings,
    FeatureRecord,
)
from evgrade.rubric.feature_extractor import extract_features as _extract
from evgrade.rubric.scoring import (
    calculate_confidence,
    calculate_external_validity,
    calculate_measurement_quality,
    calculate_overall_grade,
    calculate_transparency,
    recommended_use,
    sample_size_info,
)
from evgrade.rubric.study_types import (
    detect_causal_method,
    detect_study_type,
    get_causal_method_indicators,
)
from evgrade.rubric.threats import generate_follow_up_questions, identify_threats

logger = logging.getLogger(__name__)


def extract_features(text: str) -> FeatureRecord:
    """Return the raw feature record for *text* (for testing and debugging)."""
    return _extract(text)


def classify(
    text: str,
    settings: ClassifierSettings | None = None,
) -> ClassificationResult:
    """Classify the methodological strength of a study text.

    Never raises for string input; text with no recognisable signals
    comes back as ``unknown`` with baseline scores.
    """
    cfg = settings or ClassifierSettings()

    features = _extract(text)
    study_type = detect_study_type(features)
    method = detect_causal_method(features, study_type)

    strength, justification = assess_causal_strength(method, features)
    risks = identify_threats(study_type, method, features)

    external, external_notes = calculate_external_validity(features)
    measurement, measurement_notes = calculate_measurement_quality(features)
    transparency, transparency_signals = calculate_transparency(features)

    grade = calculate_overall_grade(strength, risks, external, measurement, transparency)
    questions = generate_follow_up_questions(
        study_type, method, features, risks, limit=cfg.max_follow_up_questions,
    )

    logger.debug(
        "Classified as %s / %s: strength %.1f, grade %s",
        study_type.value, method.value, strength, grade.value,
    )

    return ClassificationResult(
        study_type=study_type,
        causal_method=method,
        causal_method_indicators=tuple(get_causal_method_indicators(features)),
        causal_strength=strength,
        causal_strength_justification=justification,
        internal_validity_risks=tuple(risks),
        external_validity=external,
        external_validity_notes=external_notes,
        measurement_quality=measurement,
        measurement_quality_notes=measurement_notes,
        sample_size_info=sample_size_info(features),
        transparency_reproducibility=transparency,
        transparency_signals=tuple(transparency_signals),
        overall_evidence_grade=grade,
        confidence=calculate_confidence(features),
        recommended_use=recommended_use(grade, strength),
        follow_up_questions=tuple(questions),
        disclaimer=cfg.disclaimer,
    )


def classify_batch(
    texts: Sequence[str],
    *,
    settings: ClassifierSettings | None = None,
    progress_callback: Callable[[int, int, ClassificationResult], None] | None = None,
) -> list[ClassificationResult]:
    """Classify several texts independently.

    Args:
        texts: Study texts to classify.
        settings: Shared classifier settings.
        progress_callback: Optional ``(current, total, result)`` callback.

    Returns:
        List of results (same order as input).
    """
    results: list[ClassificationResult] = []
    total = len(texts)
    for i, text in enumerate(texts):
        result = classify(text, settings)
        results.append(result)
        if progress_callback:
            progress_callback(i + 1, total, result)
    return results
