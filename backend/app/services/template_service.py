# backend/app/services/template_service.py
"""
Template rendering service for the MatePeak platform.

Renders the HTML email templates under ``app/templates`` with Jinja2 and a
shared set of context variables (brand, frontend URL, year).
"""

from datetime import datetime
from decimal import Decimal
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME
from .template_registry import TemplateRegistry

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def currency(value: Union[Decimal, float, str, None]) -> str:
    """Format an amount as rupees."""
    return f"₹{Decimal(str(value or 0)):,.2f}"


class TemplateService:
    """
    Centralized template rendering using Jinja2.

    Rendering needs no database access, so unlike the services it does not
    extend BaseService.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(template_dir or TEMPLATE_DIR),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["currency"] = currency

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "current_year": datetime.now().year,
            "frontend_url": settings.frontend_url,
        }

    def render_template(
        self,
        template: Union[TemplateRegistry, str],
        context: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        """
        Render a template with the common context merged in.

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        name = template.value if isinstance(template, TemplateRegistry) else template
        try:
            jinja_template = self.env.get_template(name)
        except TemplateNotFound:
            logger.error(f"Template not found: {name}")
            raise

        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)
        return jinja_template.render(full_context)
