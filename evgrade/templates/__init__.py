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

"""Jinja2 report templates.

Loads templates from an optional user directory with fallback to the
package-shipped defaults.

Usage::

    from evgrade.templates import render_summary

    print(render_summary(result))
"""

from evgrade.templates.engine import TemplateEngine
from evgrade.templates.report import render_summary

__all__ = ["TemplateEngine", "render_summary"]
