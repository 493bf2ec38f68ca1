# routers/v1/__init__.py
from fastapi import APIRouter

from . import anomalies, production_order_lines, production_orders, sales_orders

api_v1 = APIRouter()
api_v1.include_router(production_orders.router)
# lines: /production-order-lines + /production-order-line-sizes
api_v1.include_router(production_order_lines.router)
api_v1.include_router(production_order_lines.sizes_router)
api_v1.include_router(anomalies.router)
# sales orders: generic CRUD + /sales-order-lines
api_v1.include_router(sales_orders.router)
api_v1.include_router(sales_orders.lines_router)
