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

"""Human-readable summary report for a :class:`ClassificationResult`."""

from __future__ import annotations

from evgrade.rubric.causal_methods import round_half_up
from evgrade.rubric.data_models import (
    ClassificationResult,
    ClassifierSettings,
    get_study_type_label,
)
from evgrade.templates.engine import TemplateEngine

SUMMARY_TEMPLATE = "summary.txt"


def render_summary(
    result: ClassificationResult,
    *,
    settings: ClassifierSettings | None = None,
    engine: TemplateEngine | None = None,
) -> str:
    """Render the bordered plain-text report for *result*."""
    cfg = settings or ClassifierSettings()
    engine = engine or TemplateEngine()
    text = engine.render(
        SUMMARY_TEMPLATE,
        result=result,
        study_type_label=get_study_type_label(result.study_type),
        confidence_pct=int(round_half_up(result.confidence * 100, 0)),
        risks=result.internal_validity_risks[:cfg.report_max_risks],
        questions=result.follow_up_questions[:cfg.report_max_questions],
    )
    return text.rstrip("\n")
