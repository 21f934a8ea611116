"""
商品卡片渲染 - 默认的单商品渲染实现 (Jinja2 模板)
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import Config

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'templates')

_environment = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(['html']),
)


class ProductCardRenderer:
    """renderCard(id) backed by the catalog's product lookup."""

    def __init__(self, catalog, template_name: str = 'product_card.html',
                 environment: Optional[Environment] = None):
        self.catalog = catalog
        self.template = (environment or _environment).get_template(template_name)

    def __call__(self, product_id: str) -> str:
        product = self.catalog.get(product_id)
        if product is None:
            return ''
        return self.template.render(product=product, currency_symbol=Config.CURRENCY_SYMBOL)
