"""
HTML rendering for widgets and the composed display page.
"""

import logging
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

logger = logging.getLogger(__name__)


class HtmlRenderer:
    """
    Renders widget fragments and pages from the package templates.

    Autoescaping is on for every template, so record text coming from the
    store is always escaped. Template objects are cached by the Jinja
    environment.
    """

    def __init__(self, package: str = "kafepano", template_dir: str = "templates"):
        self.env = Environment(
            loader=PackageLoader(package, template_dir),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        """Render a template to a string."""
        template = self.env.get_template(template_name)
        return template.render(**context).strip()
