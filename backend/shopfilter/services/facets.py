"""
可用筛选项 - 分类、价格、属性、评分、库存
"""

import math
from typing import Any, Dict, List, Optional

from config import Config

from ..models.filters import ATTRIBUTE_TAXONOMY_PREFIX, CATEGORY_TAXONOMY

RATING_VALUES = [
    {'value': 5, 'label': '5 Stars'},
    {'value': 4, 'label': '4 Stars & Up'},
    {'value': 3, 'label': '3 Stars & Up'},
    {'value': 2, 'label': '2 Stars & Up'},
    {'value': 1, 'label': '1 Star & Up'},
]

STOCK_VALUES = [
    {'value': 'instock', 'label': 'In Stock'},
    {'value': 'outofstock', 'label': 'Out of Stock'},
]


def attribute_label(taxonomy: str) -> str:
    """'pa_shoe-size' -> 'Shoe Size'"""
    name = taxonomy[len(ATTRIBUTE_TAXONOMY_PREFIX):] if taxonomy.startswith(ATTRIBUTE_TAXONOMY_PREFIX) else taxonomy
    return name.replace('-', ' ').replace('_', ' ').strip().title()


class FacetService:
    """Describes the filter panel: which facets exist and their values."""

    def __init__(self, catalog, price_range_resolver, filter_types: Optional[List[str]] = None,
                 price_override: Optional[Dict[str, float]] = None):
        self.catalog = catalog
        self.price_range_resolver = price_range_resolver
        self.filter_types = list(filter_types if filter_types is not None else Config.FILTER_TYPES)
        if price_override is None:
            price_override = {'min': Config.FILTER_PRICE_MIN, 'max': Config.FILTER_PRICE_MAX}
        self.price_override = price_override

    def category_facet(self) -> Dict[str, Any]:
        return {
            'name': 'Categories',
            'type': 'category',
            'values': self.catalog.terms(CATEGORY_TAXONOMY),
        }

    def price_facet(self) -> Dict[str, Any]:
        # 管理员设置了上限时直接使用，否则按目录价格取整
        if self.price_override and self.price_override.get('max'):
            low, high = self.price_override.get('min') or 0, self.price_override['max']
        else:
            price_range = self.price_range_resolver.resolve()
            low, high = math.floor(price_range.min), math.ceil(price_range.max)
        return {'name': 'Price', 'type': 'price', 'min': low, 'max': high}

    def attribute_facets(self) -> Dict[str, Dict[str, Any]]:
        facets = {}
        for taxonomy in self.catalog.attribute_taxonomies():
            values = self.catalog.terms(taxonomy)
            if values:
                facets[taxonomy] = {
                    'name': attribute_label(taxonomy),
                    'type': 'attribute',
                    'values': values,
                }
        return facets

    def available_facets(self) -> Dict[str, Any]:
        facets: Dict[str, Any] = {}
        if 'category' in self.filter_types:
            facets['category'] = self.category_facet()
        if 'price' in self.filter_types:
            facets['price'] = self.price_facet()
        if 'attribute' in self.filter_types:
            facets['attributes'] = self.attribute_facets()
        if 'rating' in self.filter_types:
            facets['rating'] = {'name': 'Rating', 'type': 'rating', 'values': list(RATING_VALUES)}
        if 'stock' in self.filter_types:
            facets['stock'] = {'name': 'Stock Status', 'type': 'stock', 'values': list(STOCK_VALUES)}
        return facets
