# Services package
#
# Module structure:
# - filter_service.py: Pipeline entry point (FilterOrchestrator)
# - filter_input.py: Request normalization into FilterRequest
# - query_builder.py: FilterRequest -> CatalogQuerySpec, the sort table
# - response_assembler.py: Rendered listing + counts + echoed selections
# - price_range.py: Cached catalog-wide price bounds
# - catalog_repository.py: In-memory / MongoDB catalogs, catalog loading
# - rendering.py: Default product card renderer
# - facets.py: Available filter facets
# - hooks.py, cache.py: Extension points and the expiring cache
#
#   from shopfilter.services import FilterOrchestrator

from .filter_service import FilterOrchestrator
from .price_range import PriceRangeResolver
from .query_builder import QueryBuilder
from .response_assembler import ResponseAssembler
from .catalog_repository import InMemoryCatalog, MongoCatalog, load_catalog
from .rendering import ProductCardRenderer
from .facets import FacetService
from .hooks import HookRegistry
from .cache import ExpiringCache
from . import filter_input

__all__ = [
    'FilterOrchestrator',
    'PriceRangeResolver',
    'QueryBuilder',
    'ResponseAssembler',
    'InMemoryCatalog',
    'MongoCatalog',
    'load_catalog',
    'ProductCardRenderer',
    'FacetService',
    'HookRegistry',
    'ExpiringCache',
    'filter_input',
]
