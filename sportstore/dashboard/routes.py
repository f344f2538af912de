from flask import request

from . import bp
from ..services import dashboard_service
from ..utils.api import ok
from ..utils.decorators import admin_required
from ..utils.parsing import parse_int


def _limit(default):
    return min(max(parse_int(request.args.get("limit"), default), 1), 50)


@bp.get("/stats")
@admin_required
def stats(user):
    return ok("Lấy thống kê thành công", dashboard_service.stats())


@bp.get("/revenue")
@admin_required
def revenue(user):
    period = request.args.get("period", "day")
    return ok("Lấy doanh thu thành công", {"period": period, "data": dashboard_service.revenue(period)})


@bp.get("/orders")
@admin_required
def recent_orders(user):
    orders = dashboard_service.recent_orders(_limit(10))
    return ok("Lấy đơn hàng gần đây thành công", [o.as_api() for o in orders])


@bp.get("/top-products")
@admin_required
def top_products(user):
    return ok("Lấy sản phẩm bán chạy thành công", dashboard_service.top_products(_limit(5)))


@bp.get("/new-customers")
@admin_required
def new_customers(user):
    users = dashboard_service.new_customers(_limit(5))
    return ok("Lấy khách hàng mới thành công", [u.as_dict() for u in users])
