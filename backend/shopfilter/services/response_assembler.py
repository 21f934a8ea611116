"""
响应组装 - 按目录返回的顺序渲染商品卡片，拼成 FilterResponse
"""

from typing import Callable, Optional

from config import Config

from ..models.filters import FilterRequest, FilterResponse, QueryResult


class ResponseAssembler:
    """Renders a page of ids and wraps it with counts and the echoed selections."""

    def __init__(self, render_card: Callable[[str], str], no_products_message: Optional[str] = None):
        self.render_card = render_card
        self.no_products_message = no_products_message or Config.NO_PRODUCTS_MESSAGE

    def render_listing(self, ids) -> str:
        if not ids:
            return self.no_products_message
        # Order is whatever the catalog returned
        return ''.join(self.render_card(product_id) for product_id in ids)

    def assemble(self, result: QueryResult, request: FilterRequest) -> FilterResponse:
        return FilterResponse(
            html=self.render_listing(result.ids),
            count=result.total_count if result.ids else 0,
            total_pages=result.total_pages if result.ids else 0,
            current_page=request.page,
            echoed_filters=request.echo(),
        )
