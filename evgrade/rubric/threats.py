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

"""Internal-validity threat catalogue and follow-up questions.

A threat is emitted when its applicability set contains the detected
study type, the detected causal method is not excluded, and its severity
function returns a severity.  ``None`` from the severity function means
the threat does not apply to this text.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional

from evgrade.rubric.data_models import (
    OBSERVATIONAL_TYPES,
    RCT_TYPES,
    REVIEW_TYPES,
    SEVERITY_ORDER,
    CausalMethod,
    ClassifierSettings,
    FeatureRecord,
    RiskItem,
    Severity,
    StudyType,
)

logger = logging.getLogger(__name__)

# Sample size above which a study counts as broadly representative
LARGE_SAMPLE_THRESHOLD = 10_000

SeverityCheck = Callable[[FeatureRecord, StudyType], Optional[Severity]]


@dataclass(frozen=True)
class ThreatDefinition:
    name: str
    applicable_to: Optional[frozenset[StudyType]]   # None = every study type
    check_severity: SeverityCheck
    reasoning: Callable[[FeatureRecord], str]
    excluded_methods: frozenset[CausalMethod] = frozenset()

    def applies_to(self, study_type: StudyType, method: CausalMethod) -> bool:
        if self.applicable_to is not None and study_type not in self.applicable_to:
            return False
        return method not in self.excluded_methods


# --- Selection bias ---

def _selection_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    if st in RCT_TYPES:
        return None
    if f.has_matching_psm and f.has_balance_tests:
        return Severity.LOW
    if f.has_matching_psm or f.has_selection_bias_discussion:
        return Severity.MEDIUM
    return Severity.HIGH


def _selection_reasoning(f: FeatureRecord) -> str:
    if f.has_matching_psm and f.has_balance_tests:
        return ("Matching with balance verification partially addresses selection, "
                "but unobserved confounding remains possible.")
    if f.has_matching_psm:
        return "Matching attempted but balance not clearly demonstrated."
    if f.has_selection_bias_discussion:
        return "Selection bias acknowledged but not fully addressed through design."
    return "Non-random assignment without clear identification strategy raises selection concerns."


# --- Attrition ---

def _attrition_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    if f.has_attrition_discussion and f.has_sensitivity_analysis:
        return Severity.LOW
    return Severity.MEDIUM


def _attrition_reasoning(f: FeatureRecord) -> str:
    if f.has_attrition_discussion and f.has_sensitivity_analysis:
        return "Attrition discussed with bounds/sensitivity analysis."
    if f.has_attrition_discussion:
        return "Attrition mentioned but robustness to differential attrition unclear."
    return "No discussion of attrition detected; potential for differential dropout."


# --- Parallel trends ---

def _parallel_trends_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    return Severity.LOW if f.has_parallel_trends else Severity.HIGH


def _parallel_trends_reasoning(f: FeatureRecord) -> str:
    if f.has_parallel_trends and f.has_event_study:
        return "Parallel trends tested with event study showing pre-trends."
    if f.has_parallel_trends:
        return "Parallel trends assumption discussed/tested."
    return "No evidence of parallel trends testing; key identification assumption untested."


# --- Instrumental variables ---

def _weak_instrument_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    return Severity.MEDIUM if f.has_robustness_checks else Severity.HIGH


def _weak_instrument_reasoning(f: FeatureRecord) -> str:
    if f.has_robustness_checks:
        return "Some instrument strength diagnostics may be present."
    return "Instrument strength not clearly demonstrated; risk of weak instrument bias."


# --- Regression discontinuity ---

def _manipulation_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    if f.has_sensitivity_analysis or f.has_robustness_checks:
        return Severity.LOW
    return Severity.MEDIUM


def _manipulation_reasoning(f: FeatureRecord) -> str:
    if f.has_sensitivity_analysis or f.has_robustness_checks:
        return "Manipulation tests or density checks may be present."
    return "No clear mention of manipulation tests; sorting around cutoff is a concern."


# --- Spillovers ---

def _spillover_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    return Severity.LOW if f.has_spillover_discussion else Severity.MEDIUM


def _spillover_reasoning(f: FeatureRecord) -> str:
    if f.has_spillover_discussion:
        return "Spillovers acknowledged and potentially addressed."
    return "No discussion of spillovers; treatment effects may contaminate control group."


# --- Measurement ---

def _measurement_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    if f.has_admin_data or f.has_objective_measures or f.has_validated_instruments:
        return Severity.LOW
    return Severity.MEDIUM


def _measurement_reasoning(f: FeatureRecord) -> str:
    if f.has_admin_data or f.has_objective_measures:
        return "Objective/administrative measures reduce measurement concerns."
    if f.has_validated_instruments:
        return "Validated instruments used for measurement."
    if f.has_self_report:
        return "Self-reported outcomes subject to recall bias and social desirability."
    return "Measurement approach unclear."


# --- Multiple testing ---

def _multiple_testing_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    return Severity.LOW if f.has_pre_registration else Severity.MEDIUM


def _multiple_testing_reasoning(f: FeatureRecord) -> str:
    if f.has_pre_registration:
        return "Pre-registration reduces risk of specification searching."
    if f.has_robustness_checks:
        return "Multiple specifications shown, reducing cherry-picking concerns."
    return "No pre-registration; potential for selective reporting."


# --- Publication bias ---

def _publication_bias_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    return Severity.LOW if f.has_sensitivity_analysis else Severity.MEDIUM


def _publication_bias_reasoning(f: FeatureRecord) -> str:
    if f.has_sensitivity_analysis:
        return "Publication bias tests (funnel plot, Egger, etc.) may be present."
    return "Meta-analyses vulnerable to publication bias; tests not clearly mentioned."


# --- Generalizability ---

def _is_large_sample(f: FeatureRecord) -> bool:
    return f.sample_size_numeric is not None and f.sample_size_numeric > LARGE_SAMPLE_THRESHOLD


def _generalizability_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    if f.has_external_validity_discussion or _is_large_sample(f):
        return Severity.LOW
    return Severity.MEDIUM


def _generalizability_reasoning(f: FeatureRecord) -> str:
    if f.has_external_validity_discussion:
        return "External validity explicitly discussed."
    if _is_large_sample(f):
        return "Large sample may improve representativeness."
    return "Generalizability to other contexts unclear."


# --- Unobserved confounding ---

def _confounding_severity(f: FeatureRecord, st: StudyType) -> Optional[Severity]:
    return Severity.MEDIUM if f.has_sensitivity_analysis else Severity.HIGH


def _confounding_reasoning(f: FeatureRecord) -> str:
    if f.has_sensitivity_analysis:
        return ("Sensitivity analysis to unobservables conducted "
                "(e.g., Oster, Rosenbaum bounds).")
    return "Observational design cannot rule out unobserved confounders."


THREAT_DEFINITIONS: tuple[ThreatDefinition, ...] = (
    ThreatDefinition(
        name="Selection bias",
        applicable_to=None,
        excluded_methods=frozenset({CausalMethod.RANDOMIZATION}),
        check_severity=_selection_severity,
        reasoning=_selection_reasoning,
    ),
    ThreatDefinition(
        name="Attrition bias",
        applicable_to=RCT_TYPES | {StudyType.OBSERVATIONAL_COHORT},
        check_severity=_attrition_severity,
        reasoning=_attrition_reasoning,
    ),
    ThreatDefinition(
        name="Parallel trends violation",
        applicable_to=frozenset({
            StudyType.QUASI_EXPERIMENTAL_DID,
            StudyType.QUASI_EXPERIMENTAL_EVENT_STUDY,
        }),
        check_severity=_parallel_trends_severity,
        reasoning=_parallel_trends_reasoning,
    ),
    ThreatDefinition(
        name="Weak instruments",
        applicable_to=frozenset({StudyType.QUASI_EXPERIMENTAL_IV}),
        check_severity=_weak_instrument_severity,
        reasoning=_weak_instrument_reasoning,
    ),
    # Untestable, so never better than medium
    ThreatDefinition(
        name="Exclusion restriction violation",
        applicable_to=frozenset({StudyType.QUASI_EXPERIMENTAL_IV}),
        check_severity=lambda f, st: Severity.MEDIUM,
        reasoning=lambda f: (
            "Exclusion restriction is inherently untestable; relies on theoretical argument."
        ),
    ),
    ThreatDefinition(
        name="Running variable manipulation",
        applicable_to=frozenset({StudyType.QUASI_EXPERIMENTAL_RDD}),
        check_severity=_manipulation_severity,
        reasoning=_manipulation_reasoning,
    ),
    ThreatDefinition(
        name="Spillover/SUTVA violation",
        applicable_to=RCT_TYPES | {StudyType.QUASI_EXPERIMENTAL_DID},
        check_severity=_spillover_severity,
        reasoning=_spillover_reasoning,
    ),
    ThreatDefinition(
        name="Measurement error",
        applicable_to=None,
        check_severity=_measurement_severity,
        reasoning=_measurement_reasoning,
    ),
    ThreatDefinition(
        name="Multiple hypothesis testing",
        applicable_to=None,
        check_severity=_multiple_testing_severity,
        reasoning=_multiple_testing_reasoning,
    ),
    ThreatDefinition(
        name="Publication bias",
        applicable_to=REVIEW_TYPES,
        check_severity=_publication_bias_severity,
        reasoning=_publication_bias_reasoning,
    ),
    ThreatDefinition(
        name="Limited generalizability",
        applicable_to=None,
        check_severity=_generalizability_severity,
        reasoning=_generalizability_reasoning,
    ),
    ThreatDefinition(
        name="Unobserved confounding",
        applicable_to=OBSERVATIONAL_TYPES | {StudyType.QUASI_EXPERIMENTAL_MATCHING},
        check_severity=_confounding_severity,
        reasoning=_confounding_reasoning,
    ),
)


def identify_threats(
    study_type: StudyType,
    method: CausalMethod,
    features: FeatureRecord,
) -> list[RiskItem]:
    """Evaluate the threat catalogue for one study.

    Returns the emitted risks sorted high → medium → low; within a
    severity the catalogue order is kept.
    """
    risks: list[RiskItem] = []
    for threat in THREAT_DEFINITIONS:
        if not threat.applies_to(study_type, method):
            continue
        severity = threat.check_severity(features, study_type)
        if severity is None:
            continue
        risks.append(RiskItem(
            risk=threat.name,
            severity=severity,
            reasoning=threat.reasoning(features),
        ))

    # sorted() is stable, so catalogue order survives within a tier
    risks = sorted(risks, key=lambda r: SEVERITY_ORDER[r.severity])
    logger.debug(
        "Identified %d risks (%d high) for %s",
        len(risks),
        sum(1 for r in risks if r.severity == Severity.HIGH),
        study_type.value,
    )
    return risks


def generate_follow_up_questions(
    study_type: StudyType,
    method: CausalMethod,
    features: FeatureRecord,
    risks: Sequence[RiskItem],
    *,
    limit: int = ClassifierSettings.max_follow_up_questions,
) -> list[str]:
    """Questions a reviewer should resolve, most important first.

    The checklist order is fixed; only the first *limit* are returned.
    """
    questions: list[str] = []

    if features.sample_size_numeric is None:
        questions.append("What is the sample size?")

    if method == CausalMethod.DIFFERENCE_IN_DIFFERENCES and not features.has_parallel_trends:
        questions.append("Is there evidence supporting the parallel trends assumption?")

    if method == CausalMethod.INSTRUMENTAL_VARIABLES:
        questions.append("What is the first-stage F-statistic for instrument strength?")
        questions.append("What is the theoretical argument for the exclusion restriction?")

    if method == CausalMethod.REGRESSION_DISCONTINUITY and not features.has_sensitivity_analysis:
        questions.append("Were manipulation/McCrary tests conducted?")
        questions.append("How sensitive are results to bandwidth choice?")

    if method == CausalMethod.RANDOMIZATION and not features.has_attrition_discussion:
        questions.append("What was the attrition rate and was it differential?")

    if not features.has_pre_registration:
        questions.append("Was the analysis pre-registered?")

    if not features.has_robustness_checks:
        questions.append("Were robustness checks or alternative specifications explored?")

    high_risks = [r.risk.lower() for r in risks if r.severity == Severity.HIGH]
    if high_risks:
        questions.append(f"How does the study address: {', '.join(high_risks)}?")

    if not features.has_external_validity_discussion:
        questions.append("What population/context do these results generalize to?")

    return questions[:limit]
