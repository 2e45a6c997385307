"""Render dashboard reports using Jinja2 templates."""
from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from insights.pipeline import DashboardResult
from insights.reporting.context import build_report_context

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Markdown output: HTML escaping would mangle apostrophes and accents.
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_report(result: DashboardResult) -> str:
    """Render a markdown summary of *result*."""

    context = build_report_context(result)

    template = _env.get_template("report.md.j2")
    text = template.render(**context.to_dict())
    logger.debug(
        "Report generated for view=%s sessions=%d len=%d",
        result.view,
        len(result.sessions),
        len(text),
    )
    return text
