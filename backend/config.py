import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# backend/ 目录
BACKEND_ROOT = Path(__file__).parent


def _env(name: str, fallback: str = '') -> str:
    """Read an env value, dropping wrapping quotes and leaked escaped newlines."""
    raw = os.getenv(name)
    value = (raw if raw is not None else fallback).strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]
    return value.replace("\\n", "").replace("\\r", "").strip()


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(_env(name, str(fallback)))
    except ValueError:
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(_env(name, str(fallback)))
    except ValueError:
        return fallback


def _env_bool(name: str, fallback: bool) -> bool:
    value = _env(name, '1' if fallback else '0').lower()
    return value in {'1', 'true', 'yes', 'on'}


def _env_list(name: str, fallback: str = '') -> list:
    return [item.strip() for item in _env(name, fallback).split(',') if item.strip()]


class Config:
    """应用配置"""
    SECRET_KEY = _env('SECRET_KEY', 'shopfilter-secret-key')

    # 商品数据路径: DATA_PATH/products.json，不存在时使用内置示例商品
    DATA_PATH = _env('DATA_PATH', str(BACKEND_ROOT / 'data'))

    # MongoDB 配置 (为空时不启用)
    MONGO_URI = _env('MONGO_URI')
    MONGO_COLLECTION = _env('MONGO_COLLECTION', 'products')

    # API 配置
    API_PREFIX = '/api/v1'

    # CORS allowlist (comma-separated origins)
    # Example:
    # CORS_ALLOWED_ORIGINS=https://shop.example.com,https://www.shop.example.com
    CORS_ALLOWED_ORIGINS = _env_list('CORS_ALLOWED_ORIGINS')

    # Flask 环境
    FLASK_ENV = _env('FLASK_ENV', 'development')

    # Catalog page size when a request does not carry per_page
    DEFAULT_PER_PAGE = _env_int('DEFAULT_PER_PAGE', 12)

    # Catalog-wide price range is cached for 12 hours
    PRICE_RANGE_CACHE_SECONDS = _env_int('PRICE_RANGE_CACHE_SECONDS', 12 * 60 * 60)

    # Facets exposed by GET /facets: category, price, attribute, rating, stock
    FILTER_TYPES = _env_list('FILTER_TYPES', 'category,price,attribute')

    # Admin override for the displayed price bounds (ignored while max is 0)
    FILTER_PRICE_MIN = _env_float('FILTER_PRICE_MIN', 0)
    FILTER_PRICE_MAX = _env_float('FILTER_PRICE_MAX', 0)

    # User-facing strings
    NO_PRODUCTS_MESSAGE = _env('NO_PRODUCTS_MESSAGE', 'No products found.')
    NO_PRODUCTS_AVAILABLE_MESSAGE = _env('NO_PRODUCTS_AVAILABLE_MESSAGE', 'No products available.')
    RESET_MESSAGE = _env('RESET_MESSAGE', 'Filters reset successfully.')

    # Request nonce (issued by GET /filters/nonce, checked on every POST)
    REQUIRE_NONCE = _env_bool('REQUIRE_NONCE', True)
    NONCE_MAX_AGE = _env_int('NONCE_MAX_AGE', 24 * 60 * 60)

    RATE_LIMIT_PER_MINUTE = _env_int('RATE_LIMIT_PER_MINUTE', 100)

    CURRENCY_SYMBOL = _env('CURRENCY_SYMBOL', '$')

    LOG_LEVEL = _env('LOG_LEVEL', 'INFO').upper()
