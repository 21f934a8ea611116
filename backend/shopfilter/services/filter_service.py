"""
过滤服务 - 管线入口

handle:  规范化 -> 构建查询 -> 目录查询 -> 组装响应，严格顺序执行，任一阶段失败即中止。
handle_reset: 同一条管线，只保留分页参数。
handle_price_range_query: 直接走价格区间缓存。

本模块只编排，具体实现委托给:
- filter_input: 参数规范化
- query_builder: 查询构建
- catalog_repository: 目录查询
- response_assembler: 响应组装
- price_range: 价格区间缓存
"""

from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from config import Config

from ..errors import CatalogUnavailable, FilterError, NoProductsAvailable
from ..models.filters import CatalogQuerySpec, FilterRequest, FilterResponse, PriceRange, QueryResult
from ..utils.logger import get_logger
from . import filter_input
from .price_range import PriceRangeResolver
from .query_builder import QueryBuilder
from .response_assembler import ResponseAssembler

logger = get_logger('filter_service')

# Request keys each single-dimension endpoint reads, besides paging
PRICE_KEYS = ('min_price', 'max_price')
CATEGORY_KEYS = ('categories',)
INTENTION_KEYS = ('intentions',)
SORT_KEYS = ('sort_by',)
PAGING_KEYS = ('page',)

# The only keys a reset reads
RESET_KEYS = ('page', 'per_page')


class FilterOrchestrator:
    """Runs the filter pipeline; built once and handed to the transport layer."""

    def __init__(self, catalog,
                 price_range_resolver: PriceRangeResolver,
                 render_card: Callable[[str], str],
                 query_builder: Optional[QueryBuilder] = None,
                 default_per_page: Optional[Callable[[], int]] = None,
                 no_products_available_message: Optional[str] = None):
        self.catalog = catalog
        self.price_range_resolver = price_range_resolver
        self.query_builder = query_builder or QueryBuilder()
        self.assembler = ResponseAssembler(render_card)
        self.default_per_page = default_per_page or (lambda: Config.DEFAULT_PER_PAGE)
        self.no_products_available_message = (
            no_products_available_message or Config.NO_PRODUCTS_AVAILABLE_MESSAGE
        )

    # ========== 查询计划 ==========

    def normalize(self, raw: Any) -> FilterRequest:
        return filter_input.normalize_filter_request(raw, self.default_per_page)

    def plan(self, raw: Any) -> Tuple[FilterRequest, CatalogQuerySpec]:
        request = self.normalize(raw)
        return request, self.query_builder.build(request)

    def plan_reset(self, raw: Any) -> Tuple[FilterRequest, CatalogQuerySpec]:
        # Filters are discarded unread; only paging survives a reset
        if isinstance(raw, Mapping):
            raw = {key: value for key, value in raw.items() if key in RESET_KEYS}
        request = filter_input.reset_filter_request(self.normalize(raw))
        return request, self.query_builder.build(request)

    # ========== 执行 ==========

    def _execute(self, spec: CatalogQuerySpec) -> QueryResult:
        try:
            return self.catalog.query(spec)
        except CatalogUnavailable:
            raise
        except Exception as e:
            raise CatalogUnavailable(detail=f'catalog query failed: {e}') from e

    def _run(self, request: FilterRequest, spec: CatalogQuerySpec) -> FilterResponse:
        result = self._execute(spec)
        try:
            return self.assembler.assemble(result, request)
        except FilterError:
            raise
        except Exception as e:
            # A card lookup goes back to the catalog
            raise CatalogUnavailable(detail=f'rendering failed: {e}') from e

    def handle(self, raw: Any) -> FilterResponse:
        try:
            request, spec = self.plan(raw)
            return self._run(request, spec)
        except FilterError as e:
            logger.warning("filter request failed: %s (%s)", e.message, e.detail or '-')
            raise

    def handle_reset(self, raw: Any) -> FilterResponse:
        try:
            request, spec = self.plan_reset(raw)
            response = self._run(request, spec)
        except FilterError as e:
            logger.warning("filter reset failed: %s (%s)", e.message, e.detail or '-')
            raise
        if response.count == 0:
            raise NoProductsAvailable(self.no_products_available_message)
        return response

    def handle_dimension(self, raw: Any, keys: Iterable[str]) -> FilterResponse:
        """Pipeline restricted to one filter dimension's keys (plus page)."""
        if not isinstance(raw, Mapping):
            return self.handle(raw)
        allowed = set(keys) | set(PAGING_KEYS)
        subset = {
            key: value for key, value in raw.items()
            if str(key).split('[', 1)[0] in allowed
        }
        return self.handle(subset)

    def handle_price_range_query(self) -> PriceRange:
        return self.price_range_resolver.resolve()

    def invalidate_price_range(self) -> None:
        self.price_range_resolver.invalidate()
