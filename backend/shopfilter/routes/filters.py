from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from itsdangerous import BadSignature, URLSafeTimedSerializer

from ..errors import FilterError, InvalidNonce, ValidationError
from ..services.filter_service import CATEGORY_KEYS, INTENTION_KEYS, PRICE_KEYS, SORT_KEYS
from ..utils.logger import get_logger

filters_bp = Blueprint('filters', __name__)

logger = get_logger('routes.filters')

NONCE_SALT = 'shopfilter-nonce'
NONCE_FIELD = 'nonce'
NONCE_HEADER = 'X-Filter-Nonce'


def _services():
    return current_app.extensions['shopfilter']


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=NONCE_SALT)


def issue_nonce() -> str:
    return _serializer().dumps('filter')


def _request_payload():
    """Request fields as a mapping: JSON body as-is, form/query data as lists per key."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError(detail='malformed JSON body')
        return data

    payload = {}
    for source in (request.args, request.form):
        for key in source.keys():
            payload[key] = source.getlist(key)
    return payload


def _payload_nonce(payload):
    token = request.headers.get(NONCE_HEADER)
    if token:
        return token
    if isinstance(payload, dict):
        token = payload.get(NONCE_FIELD)
        if isinstance(token, list):
            token = token[0] if token else None
        return token
    return None


def nonce_required(view):
    """Reject POSTs without a valid nonce from GET /nonce (unless REQUIRE_NONCE is off)."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_app.config.get('REQUIRE_NONCE', True):
            return view(*args, **kwargs)
        try:
            payload = _request_payload()
            token = _payload_nonce(payload)
            if not token:
                raise InvalidNonce(detail='missing nonce')
            if not isinstance(token, str):
                raise InvalidNonce(detail=f'nonce must be a string, got {type(token).__name__}')
            try:
                _serializer().loads(token, max_age=current_app.config.get('NONCE_MAX_AGE'))
            except BadSignature as e:
                raise InvalidNonce(detail=str(e)) from e
        except FilterError as e:
            return _failure(e)
        return view(*args, **kwargs)
    return wrapper


def _failure(error: FilterError):
    return jsonify(error.to_dict()), error.status_code


def _unexpected(error: Exception):
    logger.exception("unexpected filter failure: %s", error)
    return jsonify({
        'success': False,
        'message': FilterError.default_message
    }), 500


def _filter_payload():
    payload = _request_payload()
    if isinstance(payload, dict):
        payload.pop(NONCE_FIELD, None)
    return payload


@filters_bp.route('/nonce', methods=['GET'])
def get_nonce():
    """签发过滤请求使用的 nonce"""
    return jsonify({
        'success': True,
        'nonce': issue_nonce()
    })


@filters_bp.route('/', methods=['POST'])
@nonce_required
def filter_products():
    """
    多条件过滤商品

    Body (JSON 或表单):
    - categories[]: 分类 slug
    - intentions[] / attributes[taxonomy][]: 其它分类法 term
    - min_price / max_price: 价格区间
    - search: 搜索关键词
    - rating / stock_status: 评分下限 / 库存状态
    - sort_by: 排序 (price_asc/price_desc/newest/oldest/best_selling/rating/alphabetical)
    - page / per_page: 分页
    """
    try:
        response = _services()['orchestrator'].handle(_filter_payload())
        return jsonify(response.to_dict())
    except FilterError as e:
        return _failure(e)
    except Exception as e:
        return _unexpected(e)


@filters_bp.route('/reset', methods=['POST'])
@nonce_required
def reset_filters():
    """清空全部过滤条件，只保留分页"""
    try:
        response = _services()['orchestrator'].handle_reset(_filter_payload())
        payload = response.to_dict()
        payload['message'] = current_app.config.get('RESET_MESSAGE')
        return jsonify(payload)
    except FilterError as e:
        return _failure(e)
    except Exception as e:
        return _unexpected(e)


@filters_bp.route('/price-range', methods=['GET'])
def get_price_range():
    """获取全目录价格区间"""
    try:
        price_range = _services()['orchestrator'].handle_price_range_query()
        return jsonify({
            'success': True,
            'min': price_range.min,
            'max': price_range.max
        })
    except FilterError as e:
        return _failure(e)
    except Exception as e:
        return _unexpected(e)


def _dimension_view(keys):
    try:
        response = _services()['orchestrator'].handle_dimension(_filter_payload(), keys)
        return jsonify(response.to_dict())
    except FilterError as e:
        return _failure(e)
    except Exception as e:
        return _unexpected(e)


@filters_bp.route('/price', methods=['POST'])
@nonce_required
def filter_by_price():
    """只按价格过滤"""
    return _dimension_view(PRICE_KEYS)


@filters_bp.route('/category', methods=['POST'])
@nonce_required
def filter_by_category():
    """只按分类过滤"""
    return _dimension_view(CATEGORY_KEYS)


@filters_bp.route('/intention', methods=['POST'])
@nonce_required
def filter_by_intention():
    """只按 intention 分类法过滤"""
    return _dimension_view(INTENTION_KEYS)


@filters_bp.route('/sort', methods=['POST'])
@nonce_required
def sort_products():
    """只排序，不过滤"""
    return _dimension_view(SORT_KEYS)


@filters_bp.route('/facets', methods=['GET'])
def get_facets():
    """获取可用筛选项"""
    try:
        return jsonify({
            'success': True,
            'data': _services()['facets'].available_facets()
        })
    except FilterError as e:
        return _failure(e)
    except Exception as e:
        return _unexpected(e)
