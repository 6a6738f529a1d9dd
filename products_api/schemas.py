from typing import Any, List
from pydantic import BaseModel, Field
from pydantic import ConfigDict

# ---- Request bodies (documentation only; the rules in router.py do the checking) ----

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100, examples=["Monitor Curvo 49 Pulgadas"])
    price: float = Field(gt=0, examples=[300])

class ProductUpdate(ProductCreate):
    availability: bool = Field(examples=[True])

class ProductAvailability(BaseModel):
    availability: bool = Field(examples=[False])

# ---- Responses ----

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    availability: bool

class ProductResponse(BaseModel):
    data: ProductOut

class ProductListResponse(BaseModel):
    data: List[ProductOut]

class MessageResponse(BaseModel):
    data: str

class FieldErrorOut(BaseModel):
    type: str = "field"
    value: Any = None
    msg: str
    path: str
    location: str

class ValidationErrorResponse(BaseModel):
    errors: List[FieldErrorOut]

class ErrorResponse(BaseModel):
    error: str
