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

"""Method-specific causal-strength rubrics.

Each :class:`CausalMethod` has a baseline strength (0–5) and a list of
modifiers.  A modifier is keyed either to a single boolean field of the
:class:`FeatureRecord` or to a predicate over the whole record.  Adding
a method or modifier is a change to :data:`METHOD_RUBRICS` only.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from evgrade.rubric.data_models import CausalMethod, FeatureRecord

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 5.0

Condition = Union[str, Callable[[FeatureRecord], bool]]


@dataclass(frozen=True)
class Modifier:
    condition: Condition    # FeatureRecord field name or predicate
    delta: float
    description: str

    def applies(self, features: FeatureRecord) -> bool:
        if callable(self.condition):
            return bool(self.condition(features))
        return bool(getattr(features, self.condition))


@dataclass(frozen=True)
class MethodRubric:
    baseline: float
    modifiers: tuple[Modifier, ...] = ()
    required_for_strong: tuple[str, ...] = ()
    common_weaknesses: tuple[str, ...] = ()


def _sample_below(n: int) -> Callable[[FeatureRecord], bool]:
    return lambda f: f.sample_size_numeric is not None and f.sample_size_numeric < n


def _sample_above(n: int) -> Callable[[FeatureRecord], bool]:
    return lambda f: f.sample_size_numeric is not None and f.sample_size_numeric > n


METHOD_RUBRICS: dict[CausalMethod, MethodRubric] = {
    CausalMethod.RANDOMIZATION: MethodRubric(
        baseline=4.5,
        modifiers=(
            Modifier("has_blinding", 0.3, "Blinding present"),
            Modifier("has_balance_tests", 0.2, "Balance tests reported"),
            Modifier("has_power_calculation", 0.2, "Power calculation"),
            Modifier("has_attrition_discussion", 0.1, "Attrition addressed"),
            Modifier("has_pre_registration", 0.2, "Pre-registered"),
            Modifier(_sample_below(100), -0.5, "Small sample size (<100)"),
            Modifier(_sample_below(30), -0.5, "Very small sample size (<30)"),
        ),
        required_for_strong=("randomization", "control group"),
        common_weaknesses=(
            "attrition bias", "non-compliance", "spillovers", "Hawthorne effect",
        ),
    ),
    CausalMethod.DIFFERENCE_IN_DIFFERENCES: MethodRubric(
        baseline=3.5,
        modifiers=(
            Modifier("has_parallel_trends", 0.5, "Parallel trends tested/discussed"),
            Modifier("has_event_study", 0.3, "Event study/dynamic effects shown"),
            Modifier("has_fixed_effects", 0.2, "Fixed effects used"),
            Modifier("has_robustness_checks", 0.3, "Robustness checks reported"),
            Modifier("has_sensitivity_analysis", 0.2, "Sensitivity analysis"),
            Modifier(lambda f: not f.has_parallel_trends, -0.5, "No parallel trends test"),
        ),
        required_for_strong=(
            "difference-in-differences design", "parallel trends plausibility",
        ),
        common_weaknesses=(
            "parallel trends violation",
            "anticipation effects",
            "composition changes",
            "treatment timing endogeneity",
        ),
    ),
    CausalMethod.REGRESSION_DISCONTINUITY: MethodRubric(
        baseline=4.0,
        modifiers=(
            Modifier("has_robustness_checks", 0.4, "Bandwidth sensitivity tested"),
            Modifier("has_sensitivity_analysis", 0.3, "Manipulation tests"),
            Modifier("has_balance_tests", 0.2, "Continuity of covariates"),
            Modifier(_sample_above(1000), 0.2, "Large sample near cutoff"),
        ),
        required_for_strong=(
            "clear discontinuity", "running variable", "manipulation tests",
        ),
        common_weaknesses=(
            "manipulation of running variable",
            "bandwidth sensitivity",
            "local nature of estimate",
            "extrapolation concerns",
        ),
    ),
    CausalMethod.INSTRUMENTAL_VARIABLES: MethodRubric(
        baseline=3.0,
        modifiers=(
            Modifier("has_robustness_checks", 0.4, "Exclusion restriction discussed"),
            Modifier("has_sensitivity_analysis", 0.3, "Weak instrument tests"),
            Modifier(_sample_above(1000), 0.3, "Large sample size"),
        ),
        required_for_strong=(
            "instrument relevance",
            "exclusion restriction argument",
            "first-stage F-stat",
        ),
        common_weaknesses=(
            "weak instruments",
            "exclusion restriction violation",
            "monotonicity violation",
            "LATE interpretation",
        ),
    ),
    CausalMethod.PROPENSITY_SCORE_MATCHING: MethodRubric(
        baseline=2.5,
        modifiers=(
            Modifier("has_balance_tests", 0.4, "Balance achieved post-matching"),
            Modifier("has_sensitivity_analysis", 0.4, "Sensitivity to unobservables"),
            Modifier("has_robustness_checks", 0.3, "Multiple matching methods"),
        ),
        required_for_strong=(
            "rich covariates", "balance achieved", "overlap/common support",
        ),
        common_weaknesses=(
            "unobserved confounding",
            "model dependence",
            "lack of overlap",
            "selection on unobservables",
        ),
    ),
    CausalMethod.SYNTHETIC_CONTROL: MethodRubric(
        baseline=3.5,
        modifiers=(
            Modifier("has_robustness_checks", 0.4, "Placebo tests in space"),
            Modifier("has_sensitivity_analysis", 0.3, "Leave-one-out tests"),
            Modifier("has_parallel_trends", 0.3, "Good pre-treatment fit shown"),
        ),
        required_for_strong=(
            "good pre-treatment fit", "adequate donor pool", "placebo tests",
        ),
        common_weaknesses=(
            "inadequate donor pool", "poor pre-fit", "treatment anticipation", "interference",
        ),
    ),
    CausalMethod.EVENT_STUDY: MethodRubric(
        baseline=3.5,
        modifiers=(
            Modifier("has_parallel_trends", 0.4, "Pre-trends shown flat"),
            Modifier("has_robustness_checks", 0.3, "Robustness to specification"),
            Modifier("has_fixed_effects", 0.2, "Unit and time fixed effects"),
        ),
        required_for_strong=(
            "no pre-trends", "clear treatment timing", "appropriate controls",
        ),
        common_weaknesses=(
            "pre-trends", "heterogeneous treatment timing", "negative weights",
        ),
    ),
    CausalMethod.FIXED_EFFECTS: MethodRubric(
        baseline=2.0,
        modifiers=(
            Modifier("has_robustness_checks", 0.3, "Robustness checks"),
            Modifier(_sample_above(500), 0.2, "Reasonable sample"),
        ),
        required_for_strong=("within-variation argument", "time-varying treatment"),
        common_weaknesses=(
            "time-varying unobservables",
            "reverse causality",
            "limited within-variation",
            "strict exogeneity",
        ),
    ),
    CausalMethod.SELECTION_ON_OBSERVABLES: MethodRubric(
        baseline=1.5,
        modifiers=(
            Modifier("has_balance_tests", 0.2, "Controls for observables"),
            Modifier("has_robustness_checks", 0.2, "Specification robustness"),
            Modifier("has_sensitivity_analysis", 0.3, "Sensitivity analysis"),
        ),
        required_for_strong=(
            "rich controls",
            "theoretical justification for no unobserved confounding",
        ),
        common_weaknesses=(
            "omitted variable bias", "reverse causality", "selection bias", "confounding",
        ),
    ),
    CausalMethod.META_ANALYTIC: MethodRubric(
        baseline=3.5,
        modifiers=(
            Modifier("has_prisma", 0.3, "PRISMA guidelines followed"),
            Modifier("has_robustness_checks", 0.3, "Heterogeneity analysis"),
            Modifier("has_sensitivity_analysis", 0.3, "Publication bias tests"),
            Modifier("has_pre_registration", 0.2, "Protocol registered"),
        ),
        required_for_strong=(
            "systematic search", "quality assessment", "heterogeneity analysis",
        ),
        common_weaknesses=(
            "publication bias",
            "heterogeneity",
            "garbage in garbage out",
            "quality variation",
        ),
    ),
    CausalMethod.NONE: MethodRubric(
        baseline=1.0,
        common_weaknesses=("no causal identification strategy",),
    ),
    CausalMethod.UNKNOWN: MethodRubric(
        baseline=1.0,
        common_weaknesses=("unclear methodology",),
    ),
}


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like a person would: ``x.x5`` goes up, not to even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp_score(value: float) -> float:
    """Clamp to the 0–5 scale and round to one decimal."""
    return round_half_up(max(MIN_SCORE, min(MAX_SCORE, value)))


def assess_causal_strength(
    method: CausalMethod,
    features: FeatureRecord,
) -> tuple[float, str]:
    """Score causal strength for *method* given the extracted *features*.

    Returns ``(score, justification)``: the baseline plus every applicable
    modifier, clamped to 0–5 and rounded to one decimal, and a sentence
    describing how the score was reached.
    """
    rubric = METHOD_RUBRICS[method]
    score = rubric.baseline
    applied: list[str] = []

    for mod in rubric.modifiers:
        if mod.applies(features):
            score += mod.delta
            applied.append(f"{mod.delta:+g}: {mod.description}")

    score = clamp_score(score)

    parts = [f"Base strength for {method.label}: {rubric.baseline:g}/5."]
    if applied:
        parts.append(f"Modifiers applied: {'; '.join(applied)}.")
    if rubric.required_for_strong:
        parts.append(f"Strong evidence requires: {', '.join(rubric.required_for_strong)}.")
    justification = " ".join(parts)

    logger.debug("Causal strength for %s: %.1f (%d modifiers)", method.value, score, len(applied))
    return score, justification


def get_method_weaknesses(method: CausalMethod) -> list[str]:
    """Typical weaknesses of a causal method."""
    return list(METHOD_RUBRICS[method].common_weaknesses)


def get_required_for_strong(method: CausalMethod) -> list[str]:
    """What a study using *method* needs to show for strong evidence."""
    return list(METHOD_RUBRICS[method].required_for_strong)
