"""Data models for the evidence classification pipeline.

Defines enums for study type, causal method, risk severity and evidence
grade, the :class:`FeatureRecord` produced by the feature extractor, and
the :class:`ClassificationResult` that :func:`classify` returns.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Study type
# ---------------------------------------------------------------------------

class StudyType(Enum):
    RCT = "rct"
    CLUSTER_RCT = "cluster_rct"
    QUASI_EXPERIMENTAL_DID = "quasi_experimental_did"
    QUASI_EXPERIMENTAL_RDD = "quasi_experimental_rdd"
    QUASI_EXPERIMENTAL_IV = "quasi_experimental_iv"
    QUASI_EXPERIMENTAL_MATCHING = "quasi_experimental_matching"
    QUASI_EXPERIMENTAL_SYNTHETIC_CONTROL = "quasi_experimental_synthetic_control"
    QUASI_EXPERIMENTAL_EVENT_STUDY = "quasi_experimental_event_study"
    OBSERVATIONAL_CROSS_SECTIONAL = "observational_cross_sectional"
    OBSERVATIONAL_COHORT = "observational_cohort"
    OBSERVATIONAL_CASE_CONTROL = "observational_case_control"
    QUALITATIVE = "qualitative"
    MIXED_METHODS = "mixed_methods"
    MODELING_SIMULATION = "modeling_simulation"
    SYSTEMATIC_REVIEW = "systematic_review"
    META_ANALYSIS = "meta_analysis"
    UNKNOWN = "unknown"


RCT_TYPES: frozenset[StudyType] = frozenset({
    StudyType.RCT,
    StudyType.CLUSTER_RCT,
})

OBSERVATIONAL_TYPES: frozenset[StudyType] = frozenset({
    StudyType.OBSERVATIONAL_COHORT,
    StudyType.OBSERVATIONAL_CROSS_SECTIONAL,
    StudyType.OBSERVATIONAL_CASE_CONTROL,
})

REVIEW_TYPES: frozenset[StudyType] = frozenset({
    StudyType.SYSTEMATIC_REVIEW,
    StudyType.META_ANALYSIS,
})

STUDY_TYPE_LABELS: dict[StudyType, str] = {
    StudyType.RCT: "Randomized Controlled Trial (RCT)",
    StudyType.CLUSTER_RCT: "Cluster Randomized Controlled Trial",
    StudyType.QUASI_EXPERIMENTAL_DID: "Quasi-Experimental (Difference-in-Differences)",
    StudyType.QUASI_EXPERIMENTAL_RDD: "Quasi-Experimental (Regression Discontinuity)",
    StudyType.QUASI_EXPERIMENTAL_IV: "Quasi-Experimental (Instrumental Variables)",
    StudyType.QUASI_EXPERIMENTAL_MATCHING: "Quasi-Experimental (Matching/PSM)",
    StudyType.QUASI_EXPERIMENTAL_SYNTHETIC_CONTROL: "Quasi-Experimental (Synthetic Control)",
    StudyType.QUASI_EXPERIMENTAL_EVENT_STUDY: "Quasi-Experimental (Event Study)",
    StudyType.OBSERVATIONAL_CROSS_SECTIONAL: "Observational (Cross-Sectional)",
    StudyType.OBSERVATIONAL_COHORT: "Observational (Cohort)",
    StudyType.OBSERVATIONAL_CASE_CONTROL: "Observational (Case-Control)",
    StudyType.QUALITATIVE: "Qualitative",
    StudyType.MIXED_METHODS: "Mixed Methods",
    StudyType.MODELING_SIMULATION: "Modeling/Simulation",
    StudyType.SYSTEMATIC_REVIEW: "Systematic Review",
    StudyType.META_ANALYSIS: "Meta-Analysis",
    StudyType.UNKNOWN: "Unknown/Unclear",
}


def get_study_type_label(study_type: StudyType) -> str:
    """Human-readable label for a study type."""
    return STUDY_TYPE_LABELS[study_type]


# ---------------------------------------------------------------------------
# Causal method
# ---------------------------------------------------------------------------

class CausalMethod(Enum):
    RANDOMIZATION = "randomization"
    DIFFERENCE_IN_DIFFERENCES = "difference_in_differences"
    REGRESSION_DISCONTINUITY = "regression_discontinuity"
    INSTRUMENTAL_VARIABLES = "instrumental_variables"
    PROPENSITY_SCORE_MATCHING = "propensity_score_matching"
    SYNTHETIC_CONTROL = "synthetic_control"
    EVENT_STUDY = "event_study"
    FIXED_EFFECTS = "fixed_effects"
    SELECTION_ON_OBSERVABLES = "selection_on_observables"
    META_ANALYTIC = "meta_analytic"
    NONE = "none"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


# ---------------------------------------------------------------------------
# Severity and grade
# ---------------------------------------------------------------------------

class Severity(Enum):
    """Severity of an internal-validity threat."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Sort key: high first
SEVERITY_ORDER: dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


class EvidenceGrade(Enum):
    VERY_STRONG = "Very Strong"
    STRONG = "Strong"
    MODERATE = "Moderate"
    WEAK = "Weak"
    VERY_WEAK = "Very Weak"


# ---------------------------------------------------------------------------
# Extracted features
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeatureRecord:
    """Keyword evidence found in a study text.

    Every flag is derived from its own pattern; no flag depends on another.
    """

    # Study design
    has_randomization: bool = False
    has_placebo: bool = False
    has_control_group: bool = False
    has_blinding: bool = False
    has_baseline: bool = False
    has_cluster_design: bool = False

    # Quasi-experimental
    has_difference_in_differences: bool = False
    has_parallel_trends: bool = False
    has_fixed_effects: bool = False
    has_instrumental_variable: bool = False
    has_regression_discontinuity: bool = False
    has_matching_psm: bool = False
    has_synthetic_control: bool = False
    has_event_study: bool = False

    # Quality / reporting
    has_power_calculation: bool = False
    has_pre_registration: bool = False
    has_robustness_checks: bool = False
    has_balance_tests: bool = False
    has_sensitivity_analysis: bool = False
    has_consort: bool = False
    has_prisma: bool = False
    has_data_availability: bool = False
    has_code_availability: bool = False

    # Validity discussions
    has_attrition_discussion: bool = False
    has_spillover_discussion: bool = False
    has_selection_bias_discussion: bool = False
    has_external_validity_discussion: bool = False

    # Reviews
    is_systematic_review: bool = False
    is_meta_analysis: bool = False

    # Measurement
    has_validated_instruments: bool = False
    has_admin_data: bool = False
    has_self_report: bool = False
    has_objective_measures: bool = False

    # Sample information
    sample_size_numeric: Optional[int] = None
    sample_size_text: Optional[str] = None
    study_count_text: Optional[str] = None

    # Detector names that fired, in declaration order
    matched_keywords: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d = dict(self.__dict__)
        d["matched_keywords"] = list(self.matched_keywords)
        return d


# ---------------------------------------------------------------------------
# Risks and the classification result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskItem:
    """A single internal-validity threat that applies to the study."""
    risk: str
    severity: Severity
    reasoning: str

    def to_dict(self) -> dict[str, str]:
        return {
            "risk": self.risk,
            "severity": self.severity.value,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RiskItem:
        return cls(
            risk=data["risk"],
            severity=Severity(data["severity"]),
            reasoning=data.get("reasoning", ""),
        )


DISCLAIMER = (
    "Automated heuristic classification based on text analysis. "
    "Not a substitute for full critical appraisal by domain experts. "
    "Does not constitute medical, legal, or policy advice."
)


@dataclass(frozen=True)
class ClassifierSettings:
    """User-configurable classifier and report settings."""
    disclaimer: str = DISCLAIMER
    max_follow_up_questions: int = 5
    min_text_length: int = 50      # enforced by the CLI, not by classify()
    report_max_risks: int = 4
    report_max_questions: int = 3


@dataclass(frozen=True)
class ClassificationResult:
    """Everything :func:`classify` knows about one study text."""

    study_type: StudyType
    causal_method: CausalMethod
    causal_method_indicators: tuple[str, ...]
    causal_strength: float                 # 0–5
    causal_strength_justification: str
    internal_validity_risks: tuple[RiskItem, ...]
    external_validity: float               # 0–5
    external_validity_notes: str
    measurement_quality: float             # 0–5
    measurement_quality_notes: str
    sample_size_info: str
    transparency_reproducibility: float    # 0–5
    transparency_signals: tuple[str, ...]
    overall_evidence_grade: EvidenceGrade
    confidence: float                      # 0–1
    recommended_use: str
    follow_up_questions: tuple[str, ...] = field(default_factory=tuple)
    disclaimer: str = DISCLAIMER

    @property
    def high_risks(self) -> list[RiskItem]:
        return [r for r in self.internal_validity_risks if r.severity == Severity.HIGH]

    # --- Serialisation ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "study_type": self.study_type.value,
            "causal_method": self.causal_method.value,
            "causal_method_indicators": list(self.causal_method_indicators),
            "causal_strength": self.causal_strength,
            "causal_strength_justification": self.causal_strength_justification,
            "internal_validity_risks": [r.to_dict() for r in self.internal_validity_risks],
            "external_validity": self.external_validity,
            "external_validity_notes": self.external_validity_notes,
            "measurement_quality": self.measurement_quality,
            "measurement_quality_notes": self.measurement_quality_notes,
            "sample_size_info": self.sample_size_info,
            "transparency_reproducibility": self.transparency_reproducibility,
            "transparency_signals": list(self.transparency_signals),
            "overall_evidence_grade": self.overall_evidence_grade.value,
            "confidence": self.confidence,
            "recommended_use": self.recommended_use,
            "follow_up_questions": list(self.follow_up_questions),
            "disclaimer": self.disclaimer,
        }

    def to_json(self, pretty: bool = False) -> str:
        return json.dumps(
            self.to_dict(), indent=2 if pretty else None, ensure_ascii=False,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassificationResult:
        return cls(
            study_type=StudyType(data.get("study_type", "unknown")),
            causal_method=CausalMethod(data.get("causal_method", "unknown")),
            causal_method_indicators=tuple(data.get("causal_method_indicators", [])),
            causal_strength=data.get("causal_strength", 0.0),
            causal_strength_justification=data.get("causal_strength_justification", ""),
            internal_validity_risks=tuple(
                RiskItem.from_dict(r) for r in data.get("internal_validity_risks", [])
            ),
            external_validity=data.get("external_validity", 0.0),
            external_validity_notes=data.get("external_validity_notes", ""),
            measurement_quality=data.get("measurement_quality", 0.0),
            measurement_quality_notes=data.get("measurement_quality_notes", ""),
            sample_size_info=data.get("sample_size_info", ""),
            transparency_reproducibility=data.get("transparency_reproducibility", 0.0),
            transparency_signals=tuple(data.get("transparency_signals", [])),
            overall_evidence_grade=EvidenceGrade(
                data.get("overall_evidence_grade", EvidenceGrade.VERY_WEAK.value)
            ),
            confidence=data.get("confidence", 0.0),
            recommended_use=data.get("recommended_use", ""),
            follow_up_questions=tuple(data.get("follow_up_questions", [])),
            disclaimer=data.get("disclaimer", DISCLAIMER),
        )
