from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

Money = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class ProductBase(BaseModel):
    nome: str = Field(min_length=1, max_length=255)
    preco: Money
    imagem: str | None = None


class Product(ProductBase):
    id: str = Field(min_length=1, max_length=64)


class ProductUpdate(ProductBase):
    pass


class MessageResponse(BaseModel):
    message: str
