from flask import Flask, request, jsonify
from flask_cors import CORS
from flask_pymongo import PyMongo
from config import Config
from collections import defaultdict
import time

from .services import (
    ExpiringCache,
    FacetService,
    FilterOrchestrator,
    HookRegistry,
    PriceRangeResolver,
    ProductCardRenderer,
    QueryBuilder,
    load_catalog,
)
from .utils.logger import get_logger

logger = get_logger('app')

mongo = PyMongo()


# Simple in-memory rate limiter
class RateLimiter:
    """Sliding one-minute window of request timestamps per client key."""
    def __init__(self, requests_per_minute=100, clock=time.time):
        self.requests_per_minute = requests_per_minute
        self.clock = clock
        self.requests = defaultdict(list)
        self._last_sweep = clock()

    def _sweep(self, minute_ago):
        """Forget clients with no request inside the window."""
        for key in [k for k, times in self.requests.items() if not times or times[-1] <= minute_ago]:
            del self.requests[key]
        self._last_sweep = minute_ago + 60

    def is_allowed(self, key):
        now = self.clock()
        minute_ago = now - 60

        if self._last_sweep <= minute_ago:
            self._sweep(minute_ago)

        # Clean old entries
        self.requests[key] = [t for t in self.requests[key] if t > minute_ago]

        if len(self.requests[key]) >= self.requests_per_minute:
            return False

        self.requests[key].append(now)
        return True


def client_key():
    """First X-Forwarded-For hop, else the socket address."""
    client_ip = request.headers.get('X-Forwarded-For', request.remote_addr)
    if client_ip:
        client_ip = client_ip.split(',')[0].strip()
    return client_ip or 'unknown'


def build_services(catalog, hooks=None, cache=None, config=None):
    """Wire the pipeline once: catalog, price cache, renderer, query builder, orchestrator."""
    config = config or {}
    hooks = hooks or HookRegistry()
    cache = cache or ExpiringCache()
    default_per_page = config.get('DEFAULT_PER_PAGE', Config.DEFAULT_PER_PAGE)

    price_range_resolver = PriceRangeResolver(
        catalog,
        cache,
        ttl_seconds=config.get('PRICE_RANGE_CACHE_SECONDS', Config.PRICE_RANGE_CACHE_SECONDS),
        hooks=hooks,
    )
    orchestrator = FilterOrchestrator(
        catalog,
        price_range_resolver,
        render_card=ProductCardRenderer(catalog),
        query_builder=QueryBuilder(hooks),
        default_per_page=lambda: default_per_page,
        no_products_available_message=config.get('NO_PRODUCTS_AVAILABLE_MESSAGE'),
    )
    facets = FacetService(
        catalog,
        price_range_resolver,
        filter_types=config.get('FILTER_TYPES', Config.FILTER_TYPES),
        price_override={
            'min': config.get('FILTER_PRICE_MIN', Config.FILTER_PRICE_MIN),
            'max': config.get('FILTER_PRICE_MAX', Config.FILTER_PRICE_MAX),
        },
    )
    return {
        'hooks': hooks,
        'catalog': catalog,
        'orchestrator': orchestrator,
        'facets': facets,
    }


def create_app(config_overrides=None, catalog=None):
    """创建 Flask 应用"""
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # CORS: use explicit allowlist in production when provided.
    cors_origins = app.config.get('CORS_ALLOWED_ORIGINS', [])
    if cors_origins:
        CORS(app, resources={r"/api/*": {"origins": cors_origins}})
    else:
        CORS(app, resources={r"/api/*": {"origins": "*"}})

    # 目录: 传入的目录 > MongoDB > products.json > 示例数据
    if catalog is None:
        mongo_db = None
        if app.config.get('MONGO_URI'):
            mongo.init_app(app)
            mongo_db = mongo.db
        catalog = load_catalog(mongo_db)

    app.extensions['shopfilter'] = build_services(catalog, config=app.config)

    rate_limiter = RateLimiter(requests_per_minute=app.config.get('RATE_LIMIT_PER_MINUTE', 100))

    # Rate limiting middleware
    @app.before_request
    def check_rate_limit():
        if request.path.startswith('/api/'):
            if not rate_limiter.is_allowed(client_key()):
                return jsonify({
                    'success': False,
                    'message': 'Rate limit exceeded. Please wait a moment.',
                    'error': 'TOO_MANY_REQUESTS'
                }), 429

    # 注册蓝图
    from .routes.filters import filters_bp

    app.register_blueprint(filters_bp, url_prefix=f"{app.config.get('API_PREFIX', '/api/v1')}/filters")

    return app
