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

"""Keyword-based feature extraction from study text.

Each detector is a case-insensitive regular expression tested against the
raw text.  Detectors are independent of one another; the order they are
declared in is the order their names appear in
:attr:`FeatureRecord.matched_keywords`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from evgrade.rubric.data_models import FeatureRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureDetector:
    """One boolean feature: record field, keyword name, and its pattern."""
    field: str
    keyword: str
    pattern: re.Pattern[str]


def _p(regex: str) -> re.Pattern[str]:
    return re.compile(regex, re.IGNORECASE | re.ASCII)


FEATURE_DETECTORS: tuple[FeatureDetector, ...] = (
    # --- Study design ---
    FeatureDetector(
        "has_randomization", "randomization",
        _p(r"\b(random(ly|ized|isation|ization)?|rct|randomized controlled trial"
           r"|randomised controlled trial|random assignment|random allocation|cluster.?random)"),
    ),
    FeatureDetector(
        "has_placebo", "placebo",
        _p(r"\b(placebo|sham|dummy treatment)\b"),
    ),
    FeatureDetector(
        "has_control_group", "control_group",
        _p(r"\b(control group|control arm|control condition|comparison group|waitlist control"
           r"|treatment as usual|usual care|no.?treatment|compared to control|control\)"
           r"|assigned to control|to control\b|(\d+)\s+to\s+control)\b"),
    ),
    FeatureDetector(
        "has_blinding", "blinding",
        _p(r"\b(blind(ed|ing)?|double.?blind|single.?blind|triple.?blind|mask(ed|ing)?"
           r"|concealed allocation)\b"),
    ),
    FeatureDetector(
        "has_baseline", "baseline",
        _p(r"\b(baseline|pre.?treatment|pre.?intervention|before treatment)\b"),
    ),
    FeatureDetector(
        "has_cluster_design", "cluster_design",
        _p(r"\b(cluster.?random|cluster.?rct|cluster.?trial|group.?random|school.?random"
           r"|village.?random|site.?random|community.?random"
           r"|randomized.+(?:schools?|villages?|clusters?|communities|sites|clinics|hospitals))"),
    ),

    # --- Quasi-experimental designs ---
    FeatureDetector(
        "has_difference_in_differences", "difference_in_differences",
        _p(r"\b(difference.?in.?differences?|diff.?in.?diff|did\b|dd\s|staggered.?did"
           r"|staggered.?diff|callaway.?sant.?anna|parallel.?trend|pre.?post.?design"
           r"|before.?after.?comparison|treated.+cohorts?.+across)\b"),
    ),
    FeatureDetector(
        "has_parallel_trends", "parallel_trends",
        _p(r"\b(parallel.?trend|common.?trend|pre.?trend|flat.?pre|pre.?treatment.?trend"
           r"|trend.?assumption|placebo.?test|falsification|event.?study.?framework)\b"),
    ),
    FeatureDetector(
        "has_fixed_effects", "fixed_effects",
        _p(r"\b(fixed.?effects?|entity.?fixed|time.?fixed|individual.?fixed|two.?way.?fixed"
           r"|panel.?data|within.?estimator|county.?fixed|year.?fixed|quarter.?fixed)\b"),
    ),
    FeatureDetector(
        "has_instrumental_variable", "instrumental_variable",
        _p(r"\b(instrumental.?variables?|iv\s|2sls|two.?stage|tsls|instrument(s|ed)?"
           r"|first.?stage|exclusion.?restriction|exogenous.?variation)\b"),
    ),
    FeatureDetector(
        "has_regression_discontinuity", "regression_discontinuity",
        _p(r"\b(regression.?discontinuity|rdd\b|rd\sdesign|discontinuity.?design"
           r"|running.?variable|sharp.?rd|fuzzy.?rd|mccrary|local.?linear"
           r"|bandwidth.?sensitivity|calonico|cattaneo|discontinuity.?at)\b"),
    ),
    FeatureDetector(
        "has_matching_psm", "matching_psm",
        _p(r"\b(propensity.?score|psm|matching|matched.?sample|nearest.?neighbor"
           r"|kernel.?matching|coarsened.?exact|cem|mahalanobis|caliper|overlap"
           r"|common.?support)\b"),
    ),
    FeatureDetector(
        "has_synthetic_control", "synthetic_control",
        _p(r"\b(synthetic.?control|scm|donor.?pool|counterfactual.?unit"
           r"|pre.?treatment.?fit|abadie)\b"),
    ),
    FeatureDetector(
        "has_event_study", "event_study",
        _p(r"\b(event.?study|event.?time|relative.?time|leads?.?and.?lags?"
           r"|dynamic.?effects?|pre.?period|post.?period|staggered)\b"),
    ),

    # --- Quality / reporting ---
    FeatureDetector(
        "has_power_calculation", "power_calculation",
        _p(r"\b(power.?calculation|power.?analysis|sample.?size.?calculation"
           r"|minimum.?detectable.?effect|mde|statistical.?power)\b"),
    ),
    FeatureDetector(
        "has_pre_registration", "pre_registration",
        _p(r"\b(pre.?register|preregister|registered.?report|prospective.?registration"
           r"|trial.?registration|clinicaltrials\.gov|osf|aspredicted|isrctn|aegis)\b"),
    ),
    FeatureDetector(
        "has_robustness_checks", "robustness_checks",
        _p(r"\b(robust(ness)?|sensitivity.?analysis|specification.?test"
           r"|alternative.?specification|heterogeneity.?analysis|subgroup.?analysis"
           r"|placebo.?regression|falsification)\b"),
    ),
    FeatureDetector(
        "has_balance_tests", "balance_tests",
        _p(r"\b(balance.?tests?|balance.?table|covariate.?balance|baseline.?balance"
           r"|t.?test|chi.?square.?test|standardized.?difference)\b"),
    ),
    FeatureDetector(
        "has_sensitivity_analysis", "sensitivity_analysis",
        _p(r"\b(sensitivity.?analysis|bounds.?analysis|lee.?bounds|manski.?bounds"
           r"|rosenbaum.?bounds|oster|altonji|selection.?on.?unobservables)\b"),
    ),
    FeatureDetector(
        "has_consort", "CONSORT",
        _p(r"\b(consort|consolidated.?standards)\b"),
    ),
    FeatureDetector(
        "has_prisma", "PRISMA",
        _p(r"\b(prisma|preferred.?reporting.?items)\b"),
    ),
    FeatureDetector(
        "has_data_availability", "data_availability",
        _p(r"\b(data.?available|data.?availability|replication.?data|open.?data"
           r"|data.?repository|data.?access)\b"),
    ),
    FeatureDetector(
        "has_code_availability", "code_availability",
        _p(r"\b(code.?available|replication.?code|github|gitlab|code.?repository"
           r"|reproducible)\b"),
    ),

    # --- Validity discussions ---
    FeatureDetector(
        "has_attrition_discussion", "attrition",
        _p(r"\b(attrition|dropout|loss.?to.?follow.?up|missing.?data|non.?response"
           r"|incomplete)\b"),
    ),
    FeatureDetector(
        "has_spillover_discussion", "spillover",
        _p(r"\b(spillover|contamination|interference|sutva|displacement"
           r"|general.?equilibrium)\b"),
    ),
    FeatureDetector(
        "has_selection_bias_discussion", "selection_bias",
        _p(r"\b(selection.?bias|self.?selection|endogen(ous|eity)|omitted.?variable"
           r"|unobserved.?confound|confound(er|ing)?)\b"),
    ),
    FeatureDetector(
        "has_external_validity_discussion", "external_validity",
        _p(r"\b(external.?validity|generalizab|transport|extrapolat|heterogen(eous|eity)"
           r"|site.?selection|external.?sample)\b"),
    ),

    # --- Reviews ---
    FeatureDetector(
        "is_systematic_review", "systematic_review",
        _p(r"\b(systematic.?review|literature.?review|systematic.?search"
           r"|inclusion.?criteria|exclusion.?criteria|search.?strategy"
           r"|quality.?assessment)\b"),
    ),
    FeatureDetector(
        "is_meta_analysis", "meta_analysis",
        _p(r"\b(meta.?analysis|pooled.?estimate|forest.?plot|heterogeneity.?test"
           r"|i.?squared|publication.?bias|funnel.?plot|egger|random.?effects.?model"
           r"|fixed.?effects.?model)\b"),
    ),

    # --- Measurement ---
    FeatureDetector(
        "has_validated_instruments", "validated_instruments",
        _p(r"\b(validated.?instrument|validated.?scale|validated.?measure|psychometric"
           r"|reliability|validity|cronbach|internal.?consistency)\b"),
    ),
    FeatureDetector(
        "has_admin_data", "admin_data",
        _p(r"\b(administrative.?data|administrative.?records|admin.?data|registr(y|ies)"
           r"|claims.?data|tax.?records|government.?records|linked.?data"
           r"|hospital.?records|death.?registr|medical.?records|employment.?data"
           r"|census|population.?census)\b"),
    ),
    FeatureDetector(
        "has_self_report", "self_report",
        _p(r"\b(self.?report|survey|questionnaire|interview|focus.?group)\b"),
    ),
    FeatureDetector(
        "has_objective_measures", "objective_measures",
        _p(r"\b(objective.?measure|biomarker|lab.?test|clinical.?assessment"
           r"|direct.?observation|administrative.?outcome)\b"),
    ),
)


_SAMPLE_NOUNS = (
    r"(?:participants?|subjects?|patients?|individuals?|observations?|respondents?"
    r"|households?|firms?|schools?|students?|children|adults|adolescents?|spells?"
    r"|records?|person.?years?)"
)

# Groups: 1/2 "N = <num> [mult]", 3/4 "sample [size] [of] <num> [mult]",
# 5/6 "<num> million|thousand <noun>", 7 "<num> <noun>".
# Decimals only in group 5, where a multiplier must follow (keeps "2022." out).
SAMPLE_SIZE_PATTERN = _p(
    r"\b(?:n\s*=\s*(\d[\d,]*)\s*(million|thousand|k|m)?"
    r"|sample(?:\s+size)?(?:\s+of)?\s+(\d[\d,]*)\s*(million|thousand|k|m)?"
    r"|(\d[\d,.]*)\s*(million|thousand)\s+\w*\s*" + _SAMPLE_NOUNS +
    r"|(\d[\d,]*)\s+" + _SAMPLE_NOUNS + r")\b"
)

STUDY_COUNT_PATTERN = _p(r"\b(\d+)\s+(?:studies|trials|articles|papers|publications)\b")

# Capture-group precedence for the sample-size number and its multiplier
_NUMBER_GROUPS = (1, 3, 5, 7)
_MULTIPLIER_GROUPS = (2, 4, 6)

MULTIPLIERS: dict[str, int] = {
    "million": 1_000_000,
    "m": 1_000_000,
    "thousand": 1_000,
    "k": 1_000,
}

_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?", re.ASCII)


def _first_group(match: re.Match[str], groups: tuple[int, ...]) -> Optional[str]:
    for g in groups:
        value = match.group(g)
        if value:
            return value
    return None


def parse_sample_size(text: str) -> tuple[Optional[int], Optional[str]]:
    """Return ``(numeric, matched_text)`` for the first sample-size mention.

    The number comes from the first non-empty capture group in pattern
    order, with thousands separators stripped and any ``million`` /
    ``thousand`` / ``k`` multiplier applied, rounded half-up.
    """
    match = SAMPLE_SIZE_PATTERN.search(text)
    if match is None:
        return None, None

    num_str = _first_group(match, _NUMBER_GROUPS)
    if num_str is None:
        return None, None

    leading = _LEADING_NUMBER.match(num_str.replace(",", ""))
    if leading is None:
        return None, None
    digits = leading.group(0)

    multiplier = _first_group(match, _MULTIPLIER_GROUPS)
    factor = MULTIPLIERS.get(multiplier.lower(), 1) if multiplier else 1

    # Exact for any digit run: precision covers the digits plus the factor
    with localcontext() as ctx:
        ctx.prec = len(digits) + 8
        value = (Decimal(digits) * factor).to_integral_value(ROUND_HALF_UP)

    return int(value), match.group(0)


def parse_study_count(text: str) -> Optional[str]:
    """Return the raw ``"<n> studies"`` style mention, if any."""
    match = STUDY_COUNT_PATTERN.search(text)
    return match.group(0) if match else None


def extract_features(text: str) -> FeatureRecord:
    """Scan *text* with every detector and build a :class:`FeatureRecord`.

    Never raises; absent signals simply stay ``False`` / ``None``.
    """
    flags: dict[str, bool] = {}
    matched: list[str] = []
    for detector in FEATURE_DETECTORS:
        hit = detector.pattern.search(text) is not None
        flags[detector.field] = hit
        if hit:
            matched.append(detector.keyword)

    sample_numeric, sample_text = parse_sample_size(text)

    features = FeatureRecord(
        **flags,
        sample_size_numeric=sample_numeric,
        sample_size_text=sample_text,
        study_count_text=parse_study_count(text),
        matched_keywords=tuple(matched),
    )
    logger.debug(
        "Extracted %d keyword features (sample size %s)",
        len(matched), sample_numeric,
    )
    return features
