"""
商品目录 - 执行 CatalogQuerySpec，提供价格聚合与分类法 term 列表

两种实现，能力相同:
- InMemoryCatalog: JSON 文件或内置示例商品
- MongoCatalog: MongoDB 集合 (PyMongo)
"""

import json
import math
import os
import re
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING as MONGO_ASC, DESCENDING as MONGO_DESC
from pymongo.errors import PyMongoError

from config import Config

from ..errors import CatalogUnavailable
from ..models.filters import (
    ASCENDING,
    ATTRIBUTE_TAXONOMY_PREFIX,
    MATCH_ALL,
    CatalogQuerySpec,
    QueryResult,
)
from ..models.product import Product
from ..utils.logger import get_logger

logger = get_logger('catalog')

PRODUCTS_FILE = os.path.join(Config.DATA_PATH, 'products.json')

# 示例数据（当没有配置 MongoDB 且没有 products.json 时使用）
SAMPLE_PRODUCTS = [
    {
        'id': '101',
        'title': 'Trail Runner Shoes',
        'slug': 'trail-runner-shoes',
        'price': 89.0,
        'short_description': 'Grippy outsole for wet forest trails.',
        'taxonomies': {'product_cat': ['shoes'], 'intention': ['running'], 'pa_color': ['red', 'black']},
        'average_rating': 4.6,
        'total_sales': 320,
        'stock_status': 'instock',
        'created_at': '2024-03-02',
    },
    {
        'id': '102',
        'title': 'City Sneakers',
        'slug': 'city-sneakers',
        'price': 64.5,
        'short_description': 'Everyday canvas sneakers.',
        'taxonomies': {'product_cat': ['shoes'], 'intention': ['casual'], 'pa_color': ['white']},
        'average_rating': 4.1,
        'total_sales': 510,
        'stock_status': 'instock',
        'created_at': '2024-01-15',
    },
    {
        'id': '103',
        'title': 'Alpine Hiking Boots',
        'slug': 'alpine-hiking-boots',
        'price': 149.0,
        'short_description': 'Waterproof leather boots for long hikes.',
        'taxonomies': {'product_cat': ['shoes', 'outdoor'], 'intention': ['hiking'], 'pa_color': ['brown']},
        'average_rating': 4.8,
        'total_sales': 140,
        'stock_status': 'outofstock',
        'created_at': '2023-11-20',
    },
    {
        'id': '104',
        'title': 'Merino Running Socks',
        'slug': 'merino-running-socks',
        'price': 14.0,
        'short_description': 'Cushioned merino socks, pack of two.',
        'taxonomies': {'product_cat': ['accessories'], 'intention': ['running'], 'pa_color': ['black']},
        'average_rating': 4.3,
        'total_sales': 870,
        'stock_status': 'instock',
        'created_at': '2024-04-10',
    },
    {
        'id': '105',
        'title': 'Daypack 22L',
        'slug': 'daypack-22l',
        'price': 79.0,
        'short_description': 'Light backpack with rain cover.',
        'taxonomies': {'product_cat': ['bags', 'outdoor'], 'intention': ['hiking'], 'pa_color': ['red']},
        'average_rating': 4.4,
        'total_sales': 95,
        'stock_status': 'instock',
        'created_at': '2024-02-28',
    },
    {
        'id': '106',
        'title': 'Windproof Shell Jacket',
        'slug': 'windproof-shell-jacket',
        'price': 189.0,
        'short_description': 'Packable shell for mountain weather.',
        'taxonomies': {'product_cat': ['clothing', 'outdoor'], 'intention': ['hiking'], 'pa_color': ['black']},
        'average_rating': 3.9,
        'total_sales': 60,
        'stock_status': 'instock',
        'created_at': '2023-09-05',
    },
    {
        'id': '107',
        'title': 'Gift Card',
        'slug': 'gift-card',
        'price': None,
        'short_description': 'Choose the amount at checkout.',
        'taxonomies': {'product_cat': ['accessories']},
        'average_rating': 0,
        'total_sales': 12,
        'stock_status': 'instock',
        'created_at': '2022-12-01',
    },
]


def search_terms(text: Optional[str]) -> List[str]:
    """Search text split into lowercase terms; every term must match."""
    return [term for term in (text or '').lower().split() if term]


def total_pages_for(total: int, limit: int) -> int:
    if total <= 0 or limit <= 0:
        return 0
    return int(math.ceil(total / float(limit)))


class InMemoryCatalog:
    """Catalog over a list of Product records held in memory."""

    def __init__(self, products: List[Product]):
        self._products = list(products)
        self._by_id = {p.id: p for p in self._products}

    @classmethod
    def from_dicts(cls, rows: List[Dict[str, Any]]) -> 'InMemoryCatalog':
        return cls([Product.from_dict(row) for row in rows if isinstance(row, dict)])

    def __len__(self):
        return len(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(str(product_id))

    def _published(self) -> List[Product]:
        return [p for p in self._products if p.is_published]

    @staticmethod
    def _matches(product: Product, spec: CatalogQuerySpec) -> bool:
        taxonomy_hits = [
            any(term in product.terms(predicate.taxonomy) for term in predicate.terms)
            for predicate in spec.taxonomies
        ]
        if taxonomy_hits:
            combined = all(taxonomy_hits) if spec.taxonomy_match == MATCH_ALL else any(taxonomy_hits)
            if not combined:
                return False

        if spec.price is not None:
            if not product.has_price:
                return False
            if not (spec.price.min_price <= product.price <= spec.price.max_price):
                return False

        terms = search_terms(spec.search)
        if terms:
            haystack = ' '.join((product.title, product.description, product.short_description)).lower()
            if not all(term in haystack for term in terms):
                return False

        if spec.rating_floor is not None and (product.average_rating or 0) < spec.rating_floor:
            return False

        if spec.stock_status and product.stock_status != spec.stock_status:
            return False

        return True

    @staticmethod
    def _sort_value(product: Product, field: str):
        if field == 'title':
            return product.title.lower()
        if field == 'created_at':
            return product.created_at or datetime(1970, 1, 1)
        value = getattr(product, field, None)
        return value if value is not None else 0

    def query(self, spec: CatalogQuerySpec) -> QueryResult:
        matched = [p for p in self._published() if self._matches(p, spec)]

        # 先按 id 排，再按字段排 (sorted 稳定，id 作为并列时的次序)
        matched.sort(key=lambda p: p.id)
        matched.sort(
            key=lambda p: self._sort_value(p, spec.sort.field),
            reverse=spec.sort.direction != ASCENDING,
        )

        total = len(matched)
        start = min(spec.window.offset, total)
        end = min(start + spec.window.limit, total)
        return QueryResult(
            ids=tuple(p.id for p in matched[start:end]),
            total_count=total,
            total_pages=total_pages_for(total, spec.window.limit),
        )

    def price_bounds(self) -> Dict[str, Optional[float]]:
        prices = [p.price for p in self._published() if p.has_price]
        if not prices:
            return {'min': None, 'max': None}
        return {'min': min(prices), 'max': max(prices)}

    def terms(self, taxonomy: str) -> List[Dict[str, Any]]:
        """Non-empty terms of a taxonomy with product counts, by slug."""
        counts = Counter(term for p in self._published() for term in p.terms(taxonomy))
        return [
            {'slug': slug, 'name': slug.replace('-', ' ').title(), 'count': count}
            for slug, count in sorted(counts.items())
        ]

    def attribute_taxonomies(self) -> List[str]:
        names = {
            name for p in self._published() for name in p.taxonomies
            if name.startswith(ATTRIBUTE_TAXONOMY_PREFIX)
        }
        return sorted(names)


def build_mongo_filter(spec: CatalogQuerySpec) -> Dict[str, Any]:
    """MongoDB query document equivalent to a spec's predicates."""
    query: Dict[str, Any] = {'status': 'publish'}
    clauses: List[Dict[str, Any]] = [
        {f'taxonomies.{p.taxonomy}': {'$in': list(p.terms)}}
        for p in spec.taxonomies
    ]
    if clauses:
        if spec.taxonomy_match == MATCH_ALL:
            query['$and'] = clauses
        else:
            query['$or'] = clauses

    if spec.price is not None:
        query['price'] = {'$gte': spec.price.min_price, '$lte': spec.price.max_price}

    terms = search_terms(spec.search)
    if terms:
        term_clauses = [
            {'$or': [
                {field: {'$regex': re.escape(term), '$options': 'i'}}
                for field in ('title', 'description', 'short_description')
            ]}
            for term in terms
        ]
        query.setdefault('$and', []).extend(term_clauses)

    if spec.rating_floor is not None:
        query['average_rating'] = {'$gte': spec.rating_floor}

    if spec.stock_status:
        query['stock_status'] = spec.stock_status

    return query


def build_mongo_sort(spec: CatalogQuerySpec) -> List[tuple]:
    direction = MONGO_ASC if spec.sort.direction == ASCENDING else MONGO_DESC
    return [(spec.sort.field, direction), ('id', MONGO_ASC)]


def _document_id(doc: Dict[str, Any]) -> str:
    # Imported catalogs may only carry Mongo's own _id
    return str(doc['id'] if doc.get('id') is not None else doc['_id'])


def _id_clauses(product_id: str) -> List[Dict[str, Any]]:
    clauses: List[Dict[str, Any]] = [{'id': product_id}, {'_id': product_id}]
    if ObjectId.is_valid(product_id):
        clauses.append({'_id': ObjectId(product_id)})
    return clauses


class MongoCatalog:
    """Catalog over a MongoDB products collection."""

    def __init__(self, collection):
        self.collection = collection

    def query(self, spec: CatalogQuerySpec) -> QueryResult:
        query = build_mongo_filter(spec)
        try:
            total = self.collection.count_documents(query)
            cursor = (
                self.collection.find(query, {'_id': 1, 'id': 1})
                .sort(build_mongo_sort(spec))
                .skip(spec.window.offset)
                .limit(spec.window.limit)
            )
            ids = tuple(_document_id(doc) for doc in cursor)
        except PyMongoError as e:
            raise CatalogUnavailable(detail=f'MongoDB query failed: {e}') from e
        return QueryResult(ids=ids, total_count=total, total_pages=total_pages_for(total, spec.window.limit))

    def price_bounds(self) -> Dict[str, Optional[float]]:
        pipeline = [
            {'$match': {'status': 'publish', 'price': {'$type': 'number'}}},
            {'$group': {'_id': None, 'min': {'$min': '$price'}, 'max': {'$max': '$price'}}},
        ]
        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            raise CatalogUnavailable(detail=f'MongoDB price aggregate failed: {e}') from e
        if not rows:
            return {'min': None, 'max': None}
        return {'min': rows[0].get('min'), 'max': rows[0].get('max')}

    def get(self, product_id: str) -> Optional[Product]:
        try:
            doc = self.collection.find_one({'$or': _id_clauses(str(product_id))})
        except PyMongoError as e:
            raise CatalogUnavailable(detail=f'MongoDB lookup failed: {e}') from e
        return Product.from_dict(doc) if doc else None

    def terms(self, taxonomy: str) -> List[Dict[str, Any]]:
        field = f'taxonomies.{taxonomy}'
        pipeline = [
            {'$match': {'status': 'publish', field: {'$exists': True}}},
            {'$unwind': f'${field}'},
            {'$group': {'_id': f'${field}', 'count': {'$sum': 1}}},
            {'$sort': {'_id': 1}},
        ]
        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            raise CatalogUnavailable(detail=f'MongoDB term listing failed: {e}') from e
        return [
            {'slug': str(row['_id']), 'name': str(row['_id']).replace('-', ' ').title(), 'count': row['count']}
            for row in rows
        ]

    def attribute_taxonomies(self) -> List[str]:
        pipeline = [
            {'$match': {'status': 'publish'}},
            {'$project': {'names': {'$objectToArray': '$taxonomies'}}},
            {'$unwind': '$names'},
            {'$group': {'_id': '$names.k'}},
        ]
        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            raise CatalogUnavailable(detail=f'MongoDB taxonomy listing failed: {e}') from e
        return sorted(
            str(row['_id']) for row in rows
            if str(row['_id']).startswith(ATTRIBUTE_TAXONOMY_PREFIX)
        )


def _load_products_file(path: str) -> List[Dict[str, Any]]:
    """Rows from products.json, or [] when missing or unreadable."""
    if not os.path.exists(path):
        logger.warning("⚠ %s 不存在，将使用示例数据", path)
        return []

    try:
        with open(path, 'r', encoding='utf-8') as f:
            rows = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("⚠ 加载商品文件失败: %s", e)
        return []

    if not isinstance(rows, list):
        logger.warning("⚠ %s 不是商品数组", path)
        return []

    for i, row in enumerate(rows):
        if isinstance(row, dict) and 'id' not in row:
            row['id'] = str(row.get('_id') or i + 1)

    logger.info("✓ 加载 %d 个商品 (%s)", len(rows), path)
    return rows


def load_catalog(mongo_db=None, products_file: Optional[str] = None):
    """Pick the catalog backend.

    优先级:
    1) 传入 MongoDB 数据库（配置了 MONGO_URI）时使用 MongoCatalog
    2) 否则读取 products.json
    3) 文件不存在或为空时使用内置示例商品
    """
    if mongo_db is not None:
        logger.info("✓ Using MongoDB catalog (%s)", Config.MONGO_COLLECTION)
        return MongoCatalog(mongo_db[Config.MONGO_COLLECTION])

    rows = _load_products_file(products_file or PRODUCTS_FILE)
    if not rows:
        rows = [dict(row) for row in SAMPLE_PRODUCTS]
    return InMemoryCatalog.from_dicts(rows)
