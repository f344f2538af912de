from io import BytesIO

from flask import request, send_file
from sqlalchemy import or_

from . import bp
from .. import messages as msg
from ..errors import ApiError, NotFound
from ..extensions import db
from ..model import Category, Product
from ..services import product_io, product_service, search_service
from ..utils.api import ok
from ..utils.decorators import admin_required, current_user
from ..utils.pagination import apply_sort, page_args, paginate
from ..utils.parsing import parse_bool, parse_id_list, parse_int, parse_opt_bool, parse_opt_float, parse_opt_int

SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "createdAt": Product.created_at,
    "updatedAt": Product.updated_at,
    "soldCount": Product.sold_count,
}


def _is_admin():
    u = current_user(optional=True)
    return bool(u and u.role == "admin" and u.status == "active")


def _get_or_404(pid, include_inactive=False) -> Product:
    product = db.session.get(Product, pid)
    if not product or (not include_inactive and not product.is_active):
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    return product


# GET /api/products
@bp.get("")
def list_products():
    """
    Query params:
      keyword    -> substring match on name/sku/brand
      category   -> category id or slug
      brand      -> exact brand (case-insensitive)
      brandId    -> managed brand id
      minPrice / maxPrice
      isActive   -> admins only; everyone else sees active products
      isFeatured
      sort       -> name | price | createdAt | updatedAt | soldCount
      order      -> asc | desc (default desc)
      page, limit
    """
    args = request.args
    query = Product.query

    keyword = (args.get("keyword") or args.get("q") or "").strip()
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like), Product.brand.ilike(like)))

    category = (args.get("category") or "").strip()
    if category:
        cid = parse_opt_int(category)
        if cid is None:
            cat = Category.query.filter_by(slug=category).first()
            cid = cat.id if cat else -1
        query = query.filter(Product.category_id == cid)

    brand = (args.get("brand") or "").strip()
    if brand:
        query = query.filter(Product.brand.ilike(brand))
    brand_id = parse_opt_int(args.get("brandId"))
    if brand_id is not None:
        query = query.filter(Product.brand_id == brand_id)

    min_price = parse_opt_float(args.get("minPrice"))
    max_price = parse_opt_float(args.get("maxPrice"))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)

    is_active = parse_opt_bool(args.get("isActive")) if _is_admin() else True
    if is_active is not None:
        query = query.filter(Product.is_active.is_(is_active))
    is_featured = parse_opt_bool(args.get("isFeatured"))
    if is_featured is not None:
        query = query.filter(Product.is_featured.is_(is_featured))

    query = apply_sort(query, SORT_COLUMNS, args.get("sort"), args.get("order"), Product.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách sản phẩm thành công", {
        "products": [p.as_api() for p in items],
        "pagination": pagination,
    })


@bp.get("/featured")
def featured_products():
    limit = min(max(parse_int(request.args.get("limit"), 8), 1), 50)
    items = (
        Product.query.filter(Product.is_active.is_(True), Product.is_featured.is_(True))
        .order_by(Product.updated_at.desc())
        .limit(limit)
        .all()
    )
    return ok("Lấy sản phẩm nổi bật thành công", {"products": [p.as_api() for p in items]})


@bp.get("/search")
def search_products():
    result = search_service.search(request.args.get("keyword") or request.args.get("q"))
    return ok("Tìm kiếm thành công", result)


@bp.get("/<int:pid>")
def get_product(pid):
    product = _get_or_404(pid, include_inactive=_is_admin())
    return ok("Lấy thông tin sản phẩm thành công", product.as_api())


@bp.get("/sku/<sku>")
def get_product_by_sku(sku):
    product = product_service.get_by_sku(sku)
    if not product.is_active and not _is_admin():
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    product.view_count = (product.view_count or 0) + 1
    db.session.commit()
    return ok("Lấy thông tin sản phẩm thành công", product.as_api())


# ---------- admin ----------

@bp.post("")
@admin_required
def create_product(user):
    data = request.get_json(silent=True) or {}
    product = product_service.create_product(data)
    db.session.commit()
    return ok("Tạo sản phẩm thành công", product.as_api(), status_code=201)


@bp.put("/<int:pid>")
@admin_required
def update_product(pid, user):
    product = _get_or_404(pid, include_inactive=True)
    data = request.get_json(silent=True) or {}
    product_service.update_product(product, data)
    db.session.commit()
    return ok("Cập nhật sản phẩm thành công", product.as_api())


@bp.delete("/<int:pid>")
@admin_required
def delete_product(pid, user):
    product = _get_or_404(pid, include_inactive=True)
    product_service.delete_product(product)
    db.session.commit()
    return ok("Xóa sản phẩm thành công", {"_id": pid})


@bp.patch("/admin/<int:pid>/toggle-status")
@admin_required
def toggle_status(pid, user):
    product = _get_or_404(pid, include_inactive=True)
    product.is_active = not product.is_active
    db.session.commit()
    return ok("Cập nhật trạng thái sản phẩm thành công", product.as_api())


@bp.put("/sku/<sku>/featured")
@admin_required
def set_featured(sku, user):
    product = product_service.get_by_sku(sku)
    payload = request.get_json(silent=True) or {}
    product.is_featured = parse_bool(payload.get("isFeatured")) if "isFeatured" in payload else not product.is_featured
    db.session.commit()
    return ok("Cập nhật sản phẩm nổi bật thành công", product.as_api())


@bp.post("/bulk-delete")
@admin_required
def bulk_delete(user):
    ids = parse_id_list((request.get_json(silent=True) or {}).get("productIds"))
    if not ids:
        raise ApiError(msg.INVALID_DATA)
    products = Product.query.filter(Product.id.in_(ids)).all()
    for p in products:
        product_service.delete_product(p)
    db.session.commit()
    return ok(f"Đã xóa {len(products)} sản phẩm", {"deletedCount": len(products)})


@bp.get("/export")
@admin_required
def export_products(user):
    output = product_io.export_xlsx()
    return send_file(
        output,
        as_attachment=True,
        download_name="products_export.xlsx",
        mimetype=product_io.XLSX_MIMETYPE,
    )


@bp.post("/import")
@admin_required
def import_products(user):
    file = request.files.get("file")
    if not file or not file.filename:
        raise ApiError("Vui lòng chọn file để import")
    if not file.filename.lower().endswith(".xlsx"):
        raise ApiError("Chỉ chấp nhận file .xlsx")
    result = product_io.import_xlsx(BytesIO(file.read()))
    db.session.commit()
    return ok(f"Import thành công {result['created'] + result['updated']} sản phẩm", result)
