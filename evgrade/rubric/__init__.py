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

"""Rule-based evidence strength classification.

Deterministic pipeline over a study text (typically an abstract):

- **Features**: keyword detectors for design, quality and validity signals
- **Design**: study type and causal method from priority-ordered rules
- **Strength**: method rubric with conditional modifiers
- **Threats**: applicable internal-validity risks with severities
- **Grade**: weighted component scores, confidence, guidance
"""

from evgrade.rubric.causal_methods import (
    METHOD_RUBRICS,
    assess_causal_strength,
    get_method_weaknesses,
    get_required_for_strong,
)
from evgrade.rubric.classifier import classify, classify_batch, extract_features
from evgrade.rubric.data_models import (
    DISCLAIMER,
    STUDY_TYPE_LABELS,
    CausalMethod,
    ClassificationResult,
    ClassifierSettings,
    EvidenceGrade,
    FeatureRecord,
    RiskItem,
    Severity,
    StudyType,
    get_study_type_label,
)
from evgrade.rubric.study_types import (
    STUDY_TYPE_RULES,
    detect_causal_method,
    detect_study_type,
    get_causal_method_indicators,
)
from evgrade.rubric.threats import (
    THREAT_DEFINITIONS,
    generate_follow_up_questions,
    identify_threats,
)

__all__ = [
    "classify",
    "classify_batch",
    "extract_features",
    "ClassificationResult",
    "ClassifierSettings",
    "CausalMethod",
    "EvidenceGrade",
    "FeatureRecord",
    "RiskItem",
    "Severity",
    "StudyType",
    "DISCLAIMER",
    "METHOD_RUBRICS",
    "STUDY_TYPE_LABELS",
    "STUDY_TYPE_RULES",
    "THREAT_DEFINITIONS",
    "assess_causal_strength",
    "detect_causal_method",
    "detect_study_type",
    "generate_follow_up_questions",
    "get_causal_method_indicators",
    "get_method_weaknesses",
    "get_required_for_strong",
    "get_study_type_label",
    "identify_threats",
]
