import logging
from typing import Type

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from .errors import ProductNotFound
from .gateway import ProductGateway, get_products
from .models import NAME_MAX_LENGTH, Product
from .schemas import (
    ErrorResponse, MessageResponse, ProductAvailability, ProductCreate, ProductListResponse,
    ProductOut, ProductResponse, ProductUpdate, ValidationErrorResponse,
)
from .validation import (
    Inputs, as_number, is_boolean, is_int, is_numeric, is_positive, is_text, max_length, not_empty, validate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])

# ids above the INTEGER column range cannot exist
MAX_ID = 2**31 - 1

# ---- Validation rules, in the order they report ----
ID_RULES = (
    is_int("id", "El valor tiene que ser numerico", location="params"),
    is_positive("id", "ID no valido", location="params"),
)
NAME_RULES = (
    not_empty("name", "El nombre del producto es obligatorio"),
    is_text("name", "El nombre del producto no es valido"),
    max_length(
        "name", NAME_MAX_LENGTH,
        f"El nombre del producto no puede superar {NAME_MAX_LENGTH} caracteres",
    ),
)
PRICE_RULES = (
    is_numeric("price", "Valor no valido"),
    not_empty("price", "El precio del producto es obligatorio"),
    is_positive("price", "Precio no valido"),
)
AVAILABILITY_RULES = (
    is_boolean("availability", "Valor para disponibilidad no valido"),
)

ID_RESPONSES = {
    400: {"model": ValidationErrorResponse, "description": "Bad request - invalid data"},
    404: {"model": ErrorResponse, "description": "Product not found"},
}


def json_body(schema: Type[BaseModel]) -> dict:
    """openapi_extra for a route whose body is read by the validation gate."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema.model_json_schema()}},
        }
    }


def product_body(p: Product) -> dict:
    return {"data": ProductOut.model_validate(p)}


def get_or_404(products: ProductGateway, inputs: Inputs) -> Product:
    pid = int(inputs["params"]["id"])
    p = products.find_by_pk(pid) if pid <= MAX_ID else None
    if p is None:
        raise ProductNotFound(pid)
    return p


@router.get("", response_model=ProductListResponse, summary="Get a list of products")
def list_products(products: ProductGateway = Depends(get_products)):
    return {"data": [ProductOut.model_validate(p) for p in products.find_all()]}


@router.get(
    "/{id}", response_model=ProductResponse, responses=ID_RESPONSES,
    summary="Get a product by ID",
)
def get_product(
    id: str,
    inputs: Inputs = Depends(validate(*ID_RULES)),
    products: ProductGateway = Depends(get_products),
):
    return product_body(get_or_404(products, inputs))


@router.post(
    "", response_model=ProductResponse, status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ValidationErrorResponse}},
    openapi_extra=json_body(ProductCreate),
    summary="Creates a new product",
)
def create_product(
    inputs: Inputs = Depends(validate(*NAME_RULES, *PRICE_RULES)),
    products: ProductGateway = Depends(get_products),
):
    body = inputs["body"]
    p = products.create({"name": body["name"], "price": as_number(body["price"])})
    logger.info(f"Created product {p.id}", extra={"product_id": p.id})
    return product_body(p)


@router.put(
    "/{id}", response_model=ProductResponse, responses=ID_RESPONSES,
    openapi_extra=json_body(ProductUpdate),
    summary="Updates a product with user input",
)
def update_product(
    id: str,
    inputs: Inputs = Depends(validate(*ID_RULES, *NAME_RULES, *PRICE_RULES, *AVAILABILITY_RULES)),
    products: ProductGateway = Depends(get_products),
):
    p = get_or_404(products, inputs)
    body = inputs["body"]
    p = products.update(p, {
        "name": body["name"],
        "price": as_number(body["price"]),
        "availability": body["availability"],
    })
    logger.info(f"Updated product {p.id}", extra={"product_id": p.id})
    return product_body(p)


@router.patch(
    "/{id}", response_model=ProductResponse, responses=ID_RESPONSES,
    openapi_extra=json_body(ProductAvailability),
    summary="Update product availability",
)
def update_availability(
    id: str,
    inputs: Inputs = Depends(validate(*ID_RULES, *AVAILABILITY_RULES)),
    products: ProductGateway = Depends(get_products),
):
    p = get_or_404(products, inputs)
    availability = inputs["body"]["availability"]
    p = products.update(p, {"availability": availability})
    logger.info(f"Product {p.id} availability set to {availability}", extra={"product_id": p.id})
    return product_body(p)


@router.delete(
    "/{id}", response_model=MessageResponse, responses=ID_RESPONSES,
    summary="Deletes a product by a given ID",
)
def delete_product(
    id: str,
    inputs: Inputs = Depends(validate(*ID_RULES)),
    products: ProductGateway = Depends(get_products),
):
    p = get_or_404(products, inputs)
    products.destroy(p)
    logger.info(f"Deleted product {p.id}", extra={"product_id": p.id})
    return {"data": "Producto eliminado"}
