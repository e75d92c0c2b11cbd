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

"""Jinja2-based template loader with directory fallback.

Resolution order when rendering ``engine.render("summary.txt", ...)``:

1. ``<user_dir>/summary.txt``: user's customised version
2. ``<default_dir>/summary.txt``: package-shipped default

This lets users restyle the report without touching installed code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, Environment, TemplateNotFound

from evgrade.rubric.causal_methods import round_half_up
from evgrade.rubric.data_models import Severity

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "defaults"

BAR_WIDTH = 5
BAR_FILLED = "█"
BAR_EMPTY = "░"

SEVERITY_ICONS: dict[Severity, str] = {
    Severity.HIGH: "⚠",
    Severity.MEDIUM: "○",
    Severity.LOW: "·",
}


def score_bar(score: float) -> str:
    """``[███░░]`` style bar for a 0–5 score."""
    filled = max(0, min(BAR_WIDTH, int(round_half_up(score, 0))))
    return "[" + BAR_FILLED * filled + BAR_EMPTY * (BAR_WIDTH - filled) + "]"


def severity_icon(severity: Severity) -> str:
    return SEVERITY_ICONS[severity]


class _FallbackLoader(BaseLoader):
    """Resolve report templates along a search path, first hit wins."""

    def __init__(self, search_path: Sequence[Path]) -> None:
        self.search_path = tuple(search_path)

    def find(self, template: str) -> Path | None:
        for directory in self.search_path:
            path = directory / template
            if path.is_file():
                return path
        return None

    def get_source(
        self, environment: Environment, template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        path = self.find(template)
        if path is None:
            raise TemplateNotFound(template)
        mtime = path.stat().st_mtime
        return (
            path.read_text(encoding="utf-8"),
            str(path),
            lambda: path.stat().st_mtime == mtime,
        )


class TemplateEngine:
    """Render plain-text report templates.

    Args:
        user_dir: Directory with customised templates (checked first).
        default_dir: Templates shipped with the package.
    """

    def __init__(
        self,
        user_dir: Path | None = None,
        default_dir: Path | None = DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self.user_dir = Path(user_dir).expanduser() if user_dir else None
        self.default_dir = Path(default_dir).expanduser() if default_dir else None
        self._loader = _FallbackLoader(
            [d for d in (self.user_dir, self.default_dir) if d is not None]
        )
        self._env = Environment(
            loader=self._loader,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,  # plain-text reports, not HTML
        )
        self._env.filters["score_bar"] = score_bar
        self._env.filters["severity_icon"] = severity_icon

    def template_path(self, template_name: str) -> Path | None:
        """File that *template_name* resolves to, or ``None``."""
        return self._loader.find(template_name)

    def has_template(self, template_name: str) -> bool:
        return self.template_path(template_name) is not None

    def render(self, template_name: str, **variables: Any) -> str:
        """Render *template_name* with *variables*.

        Raises ``jinja2.TemplateNotFound`` when no directory on the search
        path has the template.
        """
        tmpl = self._env.get_template(template_name)
        logger.debug("Rendering %s", tmpl.filename)
        return tmpl.render(**variables)
