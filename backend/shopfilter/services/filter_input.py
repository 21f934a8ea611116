"""
过滤参数规范化 - 把不可信的请求参数转换为 FilterRequest

越界数值一律钳制或回退默认值，只有结构上无法转换的输入才抛出 ValidationError。
"""

import math
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Union

from markupsafe import Markup

from ..errors import ValidationError
from ..models.filters import (
    CATEGORY_TAXONOMY,
    FilterRequest,
    INTENTION_TAXONOMY,
    SORT_KEYS,
    STOCK_STATUSES,
    UNBOUNDED_PRICE,
)

CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
WHITESPACE = re.compile(r'\s+')
LEADING_NUMBER = re.compile(r'^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?')
BRACKET_KEY = re.compile(r'^(?P<name>[^\[\]]+)(?P<path>(\[[^\[\]]*\])*)$')
TAXONOMY_NAME = re.compile(r'[^a-z0-9_\-]')

FALLBACK_SORT_KEY = 'alphabetical'

Scalar = Union[str, int, float]


def sanitize_text(value: Any) -> str:
    """Plain-text form of a request value: tags, control chars and extra whitespace removed."""
    if value is None:
        return ''
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(detail=f'expected a scalar, got {type(value).__name__}')
    text = str(value)
    if '<' in text or '&' in text:
        text = Markup(text).striptags()
    text = CONTROL_CHARS.sub(' ', text)
    return WHITESPACE.sub(' ', text).strip()


def sanitize_taxonomy_name(value: Any) -> str:
    """Lowercase key with only [a-z0-9_-] kept."""
    return TAXONOMY_NAME.sub('', sanitize_text(value).lower())


def _single(value: Any, key: str) -> Any:
    """Unwrap a scalar field that arrived as a list (form data is always lists)."""
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        if len(value) > 1:
            raise ValidationError(detail=f'{key}: expected one value, got {len(value)}')
        value = value[0]
    if isinstance(value, Mapping):
        raise ValidationError(detail=f'{key}: expected a scalar, got a mapping')
    return value


def sanitize_terms(value: Any) -> Tuple[str, ...]:
    """Term slugs from a scalar, a comma separated string or a list; empties and repeats dropped."""
    if value is None:
        return ()
    if isinstance(value, Mapping):
        raise ValidationError(detail='term list given as a mapping')
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        items: Iterable[Any] = str(value).split(',')
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        raise ValidationError(detail=f'unsupported term list {type(value).__name__}')

    terms = []
    for item in items:
        if isinstance(item, (list, tuple, Mapping)):
            raise ValidationError(detail='nested term list')
        term = sanitize_text(item)
        if term and term not in terms:
            terms.append(term)
    return tuple(terms)


def _parse_number(value: Any) -> Optional[float]:
    """Leading numeric prefix of value ('12abc' -> 12.0); None when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = sanitize_text(value).replace(',', '.')
    match = LEADING_NUMBER.match(text)
    if not match:
        return None
    return float(match.group(0))


def sanitize_price(value: Any, default: float) -> float:
    """Price bound as a finite, non-negative float; default when missing or unusable."""
    if value in (None, ''):
        return default
    number = _parse_number(value)
    if number is None or not math.isfinite(number):
        return default
    return max(0.0, number)


def parse_page(value: Any) -> int:
    number = _parse_number(value)
    if number is None or not math.isfinite(number):
        return 1
    return max(1, int(number))


def parse_per_page(value: Any, default: int) -> int:
    number = _parse_number(value)
    if number is None or not math.isfinite(number) or int(number) < 1:
        return default
    return int(number)


def parse_sort_key(value: Any) -> str:
    """Known sort token, 'default' when absent, 'alphabetical' for anything else."""
    token = sanitize_text(value).lower()
    if not token:
        return 'default'
    if token in SORT_KEYS:
        return token
    return FALLBACK_SORT_KEY


def parse_rating(value: Any) -> Optional[int]:
    number = _parse_number(value)
    if number is None or not math.isfinite(number) or int(number) < 1:
        return None
    return min(5, int(number))


def parse_stock_status(value: Any) -> Optional[str]:
    status = sanitize_text(value).lower()
    return status if status in STOCK_STATUSES else None


def flatten_request(raw: Mapping) -> Dict[str, Any]:
    """Fold bracketed form keys into nested values.

    ``categories[]`` becomes ``categories``; ``attributes[pa_color][]`` becomes
    ``attributes['pa_color']``. Plain keys pass through untouched.
    """
    flat: Dict[str, Any] = {}
    for key, value in raw.items():
        match = BRACKET_KEY.match(str(key))
        if not match or not match.group('path'):
            flat[key] = value
            continue

        name = match.group('name')
        parts = [p for p in re.findall(r'\[([^\[\]]*)\]', match.group('path')) if p]
        if not parts:
            flat[name] = value
            continue

        nested = flat.setdefault(name, {})
        if not isinstance(nested, dict):
            raise ValidationError(detail=f'{name}: mixes plain and keyed values')
        for part in parts[:-1]:
            nested = nested.setdefault(part, {})
            if not isinstance(nested, dict):
                raise ValidationError(detail=f'{name}: inconsistent nesting')
        nested[parts[-1]] = value
    return flat


def _parse_attributes(value: Any) -> Dict[str, Tuple[str, ...]]:
    if value in (None, '', [], ()):
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(detail='attributes must be a mapping of taxonomy to terms')

    attributes: Dict[str, Tuple[str, ...]] = {}
    for name, terms in value.items():
        taxonomy = sanitize_taxonomy_name(name)
        if not taxonomy:
            continue
        selected = sanitize_terms(terms)
        if selected:
            merged = attributes.get(taxonomy, ()) + selected
            attributes[taxonomy] = tuple(dict.fromkeys(merged))
    return attributes


def normalize_filter_request(raw: Any, default_per_page: Union[int, Callable[[], int]]) -> FilterRequest:
    """Build a FilterRequest from an untyped request mapping.

    default_per_page may be an int or a zero-argument provider; it is only
    consulted when per_page is missing or unusable.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValidationError(detail=f'filter input must be a mapping, got {type(raw).__name__}')

    data = flatten_request(raw)
    fallback_per_page = default_per_page() if callable(default_per_page) else default_per_page

    attributes = _parse_attributes(data.get('attributes'))
    intentions = sanitize_terms(data.get('intentions'))
    categories = sanitize_terms(data.get('categories'))
    # attributes[intention] and attributes[product_cat] name the same taxonomies
    # as intentions[] and categories[]
    if INTENTION_TAXONOMY in attributes:
        intentions = tuple(dict.fromkeys(intentions + attributes.pop(INTENTION_TAXONOMY)))
    if CATEGORY_TAXONOMY in attributes:
        categories = tuple(dict.fromkeys(categories + attributes.pop(CATEGORY_TAXONOMY)))

    return FilterRequest(
        categories=categories,
        intentions=intentions,
        attributes=attributes,
        min_price=sanitize_price(_single(data.get('min_price'), 'min_price'), 0.0),
        max_price=sanitize_price(_single(data.get('max_price'), 'max_price'), UNBOUNDED_PRICE),
        search=sanitize_text(_single(data.get('search'), 'search')),
        rating_floor=parse_rating(_single(data.get('rating'), 'rating')),
        stock_status=parse_stock_status(_single(data.get('stock_status'), 'stock_status')),
        sort_key=parse_sort_key(_single(data.get('sort_by'), 'sort_by')),
        page=parse_page(_single(data.get('page'), 'page')),
        per_page=parse_per_page(_single(data.get('per_page'), 'per_page'), fallback_per_page),
    )


def reset_filter_request(request: FilterRequest) -> FilterRequest:
    """Same paging, every filter dimension cleared."""
    return FilterRequest(page=request.page, per_page=request.per_page)
