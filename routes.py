"""
Route tables

Routes are described as plain ``Route`` tuples and turned into a FastAPI
router by build_router(). product_routes() is the endpoint factory shared by
the four product-like collections; order_routes() covers the order lifecycle.
"""

import math
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from fastapi import APIRouter, Body, Depends, Response
from pydantic import ValidationError as SchemaError

import database
import errors
from auth import authorize
from schemas import ORDER_STATUSES, STATUS_TRANSITIONS, Order, OrderStatusUpdate, Product

ORDERS = "orders"

# (collection, route) pairs served by the product endpoint factory
PRODUCT_RESOURCES = [
    ("bestproducts", "bestproduct"),
    ("allproducts", "allproducts"),
    ("collections", "collections"),
    ("bestsellers", "bestseller"),
]

PRODUCT_FIELDS = ("name", "price", "imageUrl", "category")
CUSTOMER_FIELDS = ("name", "address", "phone")


class Route(NamedTuple):
    path: str
    method: str
    endpoint: Callable
    status_code: int = 200
    protected: bool = False
    name: Optional[str] = None


# ---------------------- Validation ----------------------

def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def schema_message(exc: SchemaError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def build_model(model, data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        raise errors.ValidationError(schema_message(exc))


def validate_product(body: Dict[str, Any]) -> Product:
    # A falsy value counts as missing, so a price of 0 is rejected here
    if not all(body.get(field) for field in PRODUCT_FIELDS):
        raise errors.ValidationError("All fields are required")
    if not is_number(body["price"]):
        raise errors.ValidationError("Price must be a number")
    return build_model(Product, body)


def validate_order(body: Dict[str, Any]) -> Order:
    customer = body.get("customer")
    if not isinstance(customer, dict) or not all(customer.get(f) for f in CUSTOMER_FIELDS):
        raise errors.ValidationError("Customer details are required")
    cart = body.get("cart")
    if not isinstance(cart, list) or not cart:
        raise errors.ValidationError("Cart is empty")
    total = body.get("total")
    if not total or not is_number(total) or float(total) <= 0:
        raise errors.ValidationError("Invalid total")
    return build_model(Order, body)


# ---------------------- Products ----------------------

def product_routes(collection: str, route: str) -> List[Route]:
    """List, create and delete routes for one product-like collection."""

    def list_products():
        return [database.serialize(d) for d in database.get_documents(collection)]

    def create_product(body: Dict[str, Any] = Body(...)):
        product = validate_product(body)
        created = database.create_document(collection, product, timestamps=True)
        return database.serialize(created)

    def delete_product(product_id: str):
        if database.delete_document(collection, product_id) is None:
            raise errors.NotFoundError("Product not found")
        return Response(status_code=204)

    return [
        Route(f"/{route}", "GET", list_products, name=f"list_{route}"),
        Route(f"/{route}", "POST", create_product, status_code=201, protected=True,
              name=f"create_{route}"),
        Route(f"/{route}/{{product_id}}", "DELETE", delete_product, status_code=204,
              protected=True, name=f"delete_{route}"),
    ]


# ---------------------- Orders ----------------------

def order_routes(strict_transitions: bool = False) -> List[Route]:
    """Order routes. With ``strict_transitions`` a status update must follow
    STATUS_TRANSITIONS (repeating the current status is always allowed)."""

    def list_orders():
        docs = database.get_documents(ORDERS, sort=[("date", -1), ("_id", -1)])
        return [database.serialize(d) for d in docs]

    def create_order(body: Dict[str, Any] = Body(...)):
        order = validate_order(body)
        return database.serialize(database.create_document(ORDERS, order))

    def update_order_status(order_id: str, body: Dict[str, Any] = Body(...)):
        status = body.get("status")
        if status not in ORDER_STATUSES:
            raise errors.ValidationError("Invalid order status")
        update = build_model(OrderStatusUpdate, {"status": status})

        expected = None
        if strict_transitions:
            current = database.get_document(ORDERS, order_id)
            if current is None:
                raise errors.NotFoundError("Order not found")
            previous = current.get("status")
            allowed = STATUS_TRANSITIONS.get(previous or "pending", ())
            if status != previous and status not in allowed:
                raise errors.ValidationError(
                    f"Cannot change order status from {previous} to {status}")
            expected = {"status": previous}

        updated = database.update_document(ORDERS, order_id, update.model_dump(), expected=expected)
        if updated is None:
            if strict_transitions and database.get_document(ORDERS, order_id) is not None:
                raise errors.ValidationError("Order status changed during the update")
            raise errors.NotFoundError("Order not found")
        return database.serialize(updated)

    def delete_order(order_id: str):
        if database.delete_document(ORDERS, order_id) is None:
            raise errors.NotFoundError("Order not found")
        return Response(status_code=204)

    return [
        Route("/orders", "GET", list_orders, protected=True, name="list_orders"),
        Route("/orders", "POST", create_order, status_code=201, name="create_order"),
        Route("/orders/{order_id}", "PUT", update_order_status, protected=True,
              name="update_order_status"),
        Route("/orders/{order_id}", "DELETE", delete_order, status_code=204, protected=True,
              name="delete_order"),
    ]


# ---------------------- Router ----------------------

def api_routes(strict_transitions: bool = False) -> List[Route]:
    routes: List[Route] = []
    for collection, route in PRODUCT_RESOURCES:
        routes.extend(product_routes(collection, route))
    routes.extend(order_routes(strict_transitions))
    return routes


def build_router(routes: List[Route]) -> APIRouter:
    router = APIRouter()
    for route in routes:
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            status_code=route.status_code,
            name=route.name,
            dependencies=[Depends(authorize)] if route.protected else None,
        )
    return router
