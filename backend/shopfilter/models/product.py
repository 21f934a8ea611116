from datetime import datetime, timezone
from typing import Dict, List, Optional


class Product:
    """商品模型"""

    def __init__(self, product_id, title, price=None, slug='', description='',
                 short_description='', permalink='', image_url='',
                 taxonomies=None, average_rating=0, total_sales=0,
                 stock_status='instock', status='publish', created_at=None):
        self.id = str(product_id)
        self.title = title or ''
        self.price = price  # None 表示未定价
        self.slug = slug
        self.description = description or ''
        self.short_description = short_description or ''
        self.permalink = permalink
        self.image_url = image_url
        # taxonomy -> term slugs, e.g. {'product_cat': ['shoes'], 'pa_color': ['red']}
        self.taxonomies: Dict[str, List[str]] = taxonomies or {}
        self.average_rating = average_rating
        self.total_sales = total_sales
        self.stock_status = stock_status
        self.status = status
        self.created_at = _naive_utc(created_at or datetime.now(timezone.utc))

    @property
    def is_published(self) -> bool:
        return self.status == 'publish'

    @property
    def has_price(self) -> bool:
        return self.price is not None

    def terms(self, taxonomy: str) -> List[str]:
        return self.taxonomies.get(taxonomy, [])

    def to_dict(self):
        """转换为字典"""
        return {
            'id': self.id,
            'title': self.title,
            'price': self.price,
            'slug': self.slug,
            'description': self.description,
            'short_description': self.short_description,
            'permalink': self.permalink,
            'image_url': self.image_url,
            'taxonomies': self.taxonomies,
            'average_rating': self.average_rating,
            'total_sales': self.total_sales,
            'stock_status': self.stock_status,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    @staticmethod
    def from_dict(data):
        """从字典创建商品"""
        product = Product(
            product_id=data.get('id', data.get('_id', '')),
            title=data.get('title') or data.get('name'),
            price=_to_price(data.get('price')),
            slug=data.get('slug', ''),
            description=data.get('description', ''),
            short_description=data.get('short_description', ''),
            permalink=data.get('permalink', ''),
            image_url=data.get('image_url', ''),
            taxonomies={
                name: [str(term) for term in (terms or [])]
                for name, terms in (data.get('taxonomies') or {}).items()
            },
            average_rating=float(data.get('average_rating') or 0),
            total_sales=int(data.get('total_sales') or 0),
            stock_status=data.get('stock_status') or 'instock',
            status=data.get('status') or 'publish',
        )
        if 'created_at' in data:
            product.created_at = _to_datetime(data['created_at']) or product.created_at
        return product


def _to_price(value) -> Optional[float]:
    # '' and None both mean the product carries no price
    if value in (None, ''):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _naive_utc(value: datetime) -> datetime:
    # created_at is compared across products, so every value is naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return _naive_utc(value)
    if not isinstance(value, str) or not value:
        return None
    try:
        if 'T' in value:
            return _naive_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))
        return datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        return None
