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

"""Shared sample abstracts for the classification tests."""

from __future__ import annotations

import pytest

RCT_ABSTRACT = """
    Background: Micronutrient deficiencies remain prevalent in low-income settings. We conducted a randomized
    controlled trial to evaluate the impact of a fortified food supplement on child growth outcomes.

    Methods: We randomly assigned 1,200 children aged 6-24 months from 40 villages to receive either a
    fortified supplement (n=600) or placebo (n=600) for 12 months. Randomization was stratified by age and
    village. The primary outcome was height-for-age z-score (HAZ) at endline. Secondary outcomes included
    weight-for-age and hemoglobin levels. We conducted intention-to-treat analysis with pre-registered
    hypotheses. Balance tests confirmed successful randomization across 15 baseline characteristics.
    Attrition was 8% with no differential dropout between arms.

    Results: At 12 months, children in the treatment group showed significantly higher HAZ (+0.23 SD,
    95% CI: 0.11-0.35, p<0.001) compared to control. Robustness checks using alternative specifications
    and Lee bounds for attrition confirmed results.

    Conclusions: The fortified supplement significantly improved child growth with high internal validity.
    Trial registration: ISRCTN12345678.
"""

DID_ABSTRACT = """
    This study evaluates the causal impact of a state-level minimum wage increase on employment using a
    difference-in-differences design. We exploit the staggered timing of minimum wage changes across
    U.S. states between 2010 and 2019.

    Our identification strategy relies on the parallel trends assumption, which we validate by showing
    flat pre-trends in an event study framework for 8 quarters before treatment. We use county-level
    administrative employment data from the Quarterly Census of Employment and Wages (N=850,000
    county-quarter observations) with county and quarter fixed effects.

    We find a small negative employment effect of -1.2% (SE=0.4%) in the restaurant sector, robust to
    alternative control groups, bandwidth choices, and the Callaway-Sant'Anna estimator for staggered
    DiD. Placebo tests using leads show no anticipation effects. Heterogeneity analysis reveals larger
    effects in counties with lower baseline wages.
"""

IV_ABSTRACT = """
    We estimate the returns to schooling using instrumental variables, exploiting exogenous variation from
    compulsory schooling law changes across European countries from 1960-1990. Our instrument is the
    mandated years of schooling, which varies by birth cohort and country.

    Using individual-level data from the European Social Survey (N=45,000), we estimate a two-stage least
    squares model. The first-stage F-statistic is 28.4, well above conventional thresholds for weak
    instruments. We argue the exclusion restriction is plausible because schooling laws affected education
    but not earnings directly, conditional on country and cohort fixed effects.

    Our IV estimate of returns to schooling is 9.2% per year (SE=2.1%), compared to 7.1% from OLS.
    Robustness checks include alternative instruments, sensitivity to exclusion restriction violations
    using Conley bounds, and subsample analysis.
"""

COHORT_ABSTRACT = """
    Objective: To examine the association between ultra-processed food consumption and cardiovascular
    disease risk in a prospective cohort study.

    Methods: We followed 52,000 adults from the UK Biobank for a median of 10 years. Diet was assessed
    using 24-hour dietary recalls at baseline. The primary outcome was incident cardiovascular disease
    identified through linked hospital records and death registries. We used Cox proportional hazards
    models adjusting for age, sex, BMI, smoking, physical activity, education, and total energy intake.

    Results: Participants in the highest quartile of ultra-processed food consumption had 18% higher
    CVD risk (HR=1.18, 95% CI: 1.09-1.28) compared to the lowest quartile. Results were robust to
    additional adjustment for dietary quality scores. Self-reported dietary data were validated against
    biomarkers in a subsample (r=0.65).

    Limitations: Observational design cannot establish causality. Residual confounding from unmeasured
    lifestyle factors remains possible despite extensive adjustment.
"""

REVIEW_ABSTRACT = """
    Background: Cash transfer programs are widely implemented to reduce poverty, but their effects on
    child education outcomes remain debated. We conducted a systematic review and meta-analysis of
    randomized and quasi-experimental evaluations.

    Methods: Following PRISMA guidelines, we searched 8 databases and grey literature through December 2023.
    Inclusion criteria: experimental or quasi-experimental studies, cash transfers to households,
    educational outcomes for children under 18. Two reviewers independently screened 2,450 titles and
    extracted data from 45 studies representing 28 programs across 15 countries. We assessed risk of bias
    using Cochrane RoB 2.0 for RCTs and ROBINS-I for quasi-experimental studies.

    Results: Meta-analysis of 32 RCTs found cash transfers increased school enrollment by 4.2 percentage
    points (95% CI: 2.8-5.6, I2=68%). Effects were larger for conditional transfers (+5.1pp) than
    unconditional (+2.8pp). Publication bias assessment using funnel plots and Egger's test (p=0.23)
    suggested low risk. Sensitivity analysis excluding high risk-of-bias studies yielded similar results.

    Protocol registration: PROSPERO CRD42023000001.
"""

RDD_ABSTRACT = """
    We estimate the effect of elite university attendance on earnings using a regression discontinuity
    design. Our running variable is the national college entrance exam score, with a sharp cutoff for
    admission to top-tier universities in China.

    Using administrative data from tax records linked to education records for 180,000 individuals within
    50 points of the cutoff, we implement local linear regression with triangular kernel weights.
    Manipulation tests (McCrary density test, p=0.34) confirm no sorting around the threshold. Continuity
    of predetermined covariates (parental income, gender, rural/urban) at the cutoff supports the validity
    of the design.

    We find elite university attendance increases earnings at age 30 by 15% (SE=4%). Results are robust
    to bandwidth selection (Calonico-Cattaneo-Titiunik optimal bandwidth, plus half and double) and
    polynomial order. The LATE interpretation applies to marginal admits near the cutoff.
"""

SAMPLE_ABSTRACTS: dict[str, str] = {
    "rct": RCT_ABSTRACT,
    "did": DID_ABSTRACT,
    "iv": IV_ABSTRACT,
    "observational_cohort": COHORT_ABSTRACT,
    "systematic_review": REVIEW_ABSTRACT,
    "rdd": RDD_ABSTRACT,
}


@pytest.fixture(params=sorted(SAMPLE_ABSTRACTS))
def any_abstract(request) -> str:
    """Each sample abstract in turn."""
    return SAMPLE_ABSTRACTS[request.param]


@pytest.fixture
def abstracts() -> dict[str, str]:
    """Sample abstracts keyed by design name."""
    return SAMPLE_ABSTRACTS
