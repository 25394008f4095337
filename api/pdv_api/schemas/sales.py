from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pdv_api.schemas.products import Money, Product


class PaymentMethod(str, Enum):
    PIX = "pix"
    CREDITO = "credito"
    DEBITO = "debito"
    DINHEIRO = "dinheiro"


class SaleItem(BaseModel):
    produto: Product
    quantidade: int = Field(gt=0)


class Sale(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1, max_length=64)
    data: datetime
    cliente: str = Field(default="", max_length=255)
    forma_pagamento: PaymentMethod = Field(alias="formaPagamento")
    total: Money
    itens: list[SaleItem] = Field(min_length=1)

    @field_validator("cliente", mode="before")
    @classmethod
    def blank_customer(cls, value):
        return "" if value is None else value


class TopProduct(BaseModel):
    nome: str
    quantidade: int


class DashboardSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pix: Money = Decimal("0")
    credito: Money = Decimal("0")
    debito: Money = Decimal("0")
    dinheiro: Money = Decimal("0")
    total_vendas: Money = Field(default=Decimal("0"), alias="totalVendas")
    produtos_mais_vendidos: list[TopProduct] = Field(
        default_factory=list, alias="produtosMaisVendidos"
    )
