# ==============================================================================
# RUTAS DE CARTA E INVENTARIO - /api/products, /api/categories
# ==============================================================================

from flask import Blueprint, request, session

from discobar.routes.common import get_services, json_body, ok
from discobar.security import login_required, role_required, verify_csrf
from discobar.validators import parse_int

bp = Blueprint('catalog', __name__, url_prefix='/api')

PRODUCT_FIELDS = ('name', 'description', 'price', 'stock_quantity', 'category_id', 'image_url', 'is_active')


# ═══════════════════════════════════════════════════════════════════════════════
# PRODUCTOS
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/products', methods=['GET'])
@role_required('admin')
def list_products():
    return ok(products=get_services().inventory_service.list_products(request.args.get('q')))


@bp.route('/products/available', methods=['GET'])
@login_required
def list_available():
    return ok(products=get_services().inventory_service.list_available(request.args.get('q')))


@bp.route('/products/low-stock', methods=['GET'])
@role_required('admin')
def low_stock():
    threshold = request.args.get('threshold')
    if threshold is not None:
        threshold = parse_int(threshold, 'El umbral', minimum=0)
    return ok(products=get_services().inventory_service.low_stock(threshold))


@bp.route('/products/<product_id>', methods=['GET'])
@login_required
def get_product(product_id):
    return ok(product=get_services().inventory_service.get_product(product_id))


@bp.route('/products', methods=['POST'])
@role_required('admin')
@verify_csrf
def create_product():
    data = json_body()
    product = get_services().inventory_service.create_product(
        data.get('name'),
        description=data.get('description', ''),
        price=data.get('price', 0),
        stock_quantity=data.get('stock_quantity', 0),
        category_id=data.get('category_id'),
        image_url=data.get('image_url'),
        is_active=data.get('is_active', True),
        user_id=session['user_id'],
    )
    return ok(201, product=product)


@bp.route('/products/<product_id>', methods=['PATCH'])
@role_required('admin')
@verify_csrf
def update_product(product_id):
    data = json_body()
    updates = {k: data[k] for k in PRODUCT_FIELDS if k in data}
    product = get_services().inventory_service.update_product(product_id, updates, user_id=session['user_id'])
    return ok(product=product)


@bp.route('/products/<product_id>', methods=['DELETE'])
@role_required('admin')
@verify_csrf
def delete_product(product_id):
    return ok(product=get_services().inventory_service.delete_product(product_id))


@bp.route('/products/<product_id>/stock', methods=['POST'])
@role_required('admin')
@verify_csrf
def adjust_stock(product_id):
    data = json_body()
    product = get_services().inventory_service.adjust_stock(
        product_id, data.get('quantity_change'), data.get('reason', ''), user_id=session['user_id']
    )
    return ok(product=product)


# ═══════════════════════════════════════════════════════════════════════════════
# CATEGORÍAS
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/categories', methods=['GET'])
@login_required
def list_categories():
    return ok(categories=get_services().category_service.list_categories(request.args.get('q')))


@bp.route('/categories', methods=['POST'])
@role_required('admin')
@verify_csrf
def create_category():
    data = json_body()
    category = get_services().category_service.create_category(data.get('name'), data.get('description', ''))
    return ok(201, category=category)


@bp.route('/categories/<category_id>', methods=['PATCH'])
@role_required('admin')
@verify_csrf
def update_category(category_id):
    data = json_body()
    category = get_services().category_service.update_category(
        category_id, name=data.get('name'), description=data.get('description')
    )
    return ok(category=category)


@bp.route('/categories/<category_id>', methods=['DELETE'])
@role_required('admin')
@verify_csrf
def delete_category(category_id):
    return ok(category=get_services().category_service.delete_category(category_id))
