"""
过滤管线错误类型

每个错误都带有面向用户的 message 和 HTTP status_code，路由层据此返回
{success: false, message} 结构。
"""


class FilterError(Exception):
    """Base class for failures that surface as a failed filter response."""

    default_message = 'Unable to filter products.'
    status_code = 500

    def __init__(self, message: str = None, detail: str = None):
        self.message = message or self.default_message
        # detail is for logs only, never sent to the shopper
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(FilterError):
    """Filter input with a shape that cannot be coerced."""

    default_message = 'Invalid filter parameters.'
    status_code = 400


class CatalogUnavailable(FilterError):
    """The catalog (query or price aggregate) failed."""

    default_message = 'Product catalog is unavailable.'
    status_code = 503


class NoProductsAvailable(FilterError):
    """Reset found nothing at all in the catalog."""

    default_message = 'No products available.'
    status_code = 200


class InvalidNonce(FilterError):
    default_message = 'Invalid security token.'
    status_code = 403
