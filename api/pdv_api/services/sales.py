"""Sale recording and retrieval.

A sale is written as one transaction: the ``vendas`` header, one
``itens_venda`` row per item and a line appended to the day's trace.
"""

import logging
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

from sqlalchemy import Date, DateTime, Numeric, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pdv_api.core.config import settings
from pdv_api.core.errors import NotFoundError, PersistenceError, SaleRecordError
from pdv_api.schemas.products import Product
from pdv_api.schemas.sales import PaymentMethod, Sale, SaleItem

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

INSERT_SALE = text(
    """
    INSERT INTO vendas (id, data, cliente, forma_pagamento, total)
    VALUES (:id, :data, :cliente, :forma_pagamento, :total)
    """
).bindparams(
    bindparam("data", type_=DateTime()),
    bindparam("total", type_=Numeric(10, 2)),
)

INSERT_SALE_ITEM = text(
    """
    INSERT INTO itens_venda (venda_id, posicao, produto_id, quantidade)
    VALUES (:venda_id, :posicao, :produto_id, :quantidade)
    """
)

APPEND_TRACE = text(
    """
    INSERT INTO traces (data, conteudo)
    VALUES (:data, :conteudo)
    ON CONFLICT (data)
    DO UPDATE SET conteudo = traces.conteudo || EXCLUDED.conteudo
    """
).bindparams(bindparam("data", type_=Date()))

WINDOW_TYPES = (
    bindparam("inicio", type_=DateTime()),
    bindparam("fim", type_=DateTime()),
)


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_brl(value: Decimal) -> str:
    return f"{to_money(value):.2f}".replace(".", ",")


def to_local_naive(moment: datetime) -> datetime:
    """Convert an aware timestamp to server-local wall time without tzinfo."""
    if moment.tzinfo is None:
        return moment
    tz = ZoneInfo(settings.local_timezone) if settings.local_timezone else None
    return moment.astimezone(tz).replace(tzinfo=None)


def day_window(day: date) -> tuple[datetime, datetime]:
    return (
        datetime.combine(day, time(0, 0, 0)),
        datetime.combine(day, time(23, 59, 59, 999000)),
    )


def format_trace_line(sale: Sale, moment: datetime) -> str:
    items = ", ".join(f"{item.produto.nome} ({item.quantidade})" for item in sale.itens)
    method = sale.forma_pagamento.value.capitalize()
    return (
        f"[{moment:%H:%M:%S}] | Cliente: {sale.cliente} | Bebidas: {items}"
        f" | Pagamento: {method} | Total: R$ {format_brl(sale.total)}\n"
    )


def record_sale(db: Session, sale: Sale) -> None:
    # Millisecond precision keeps the stored timestamp inside the day window.
    moment = to_local_naive(sale.data)
    moment = moment.replace(microsecond=moment.microsecond // 1000 * 1000)
    entry = format_trace_line(sale, moment)

    try:
        db.execute(
            INSERT_SALE,
            {
                "id": sale.id,
                "data": moment,
                "cliente": sale.cliente,
                "forma_pagamento": sale.forma_pagamento.value,
                "total": to_money(sale.total),
            },
        )

        for position, item in enumerate(sale.itens):
            db.execute(
                INSERT_SALE_ITEM,
                {
                    "venda_id": sale.id,
                    "posicao": position,
                    "produto_id": item.produto.id,
                    "quantidade": item.quantidade,
                },
            )

        db.execute(APPEND_TRACE, {"data": moment.date(), "conteudo": entry})
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to record sale %s", sale.id)
        raise SaleRecordError() from exc

    logger.info(
        "Recorded sale %s (%s, %d items, total %s)",
        sale.id,
        sale.forma_pagamento.value,
        len(sale.itens),
        format_brl(sale.total),
    )


def _load_sales(
    db: Session,
    condition: str = "",
    params: dict | None = None,
    types: tuple = (),
) -> list[Sale]:
    headers = db.execute(
        text(
            f"""
            SELECT v.id, v.data, v.cliente, v.forma_pagamento, v.total
            FROM vendas v
            {condition}
            ORDER BY v.data ASC, v.id ASC
            """
        )
        .bindparams(*types)
        .columns(data=DateTime()),
        params or {},
    ).mappings().all()

    if not headers:
        return []

    item_rows = db.execute(
        text(
            f"""
            SELECT
              iv.venda_id,
              iv.quantidade,
              p.id AS produto_id,
              p.nome,
              p.preco,
              p.imagem
            FROM itens_venda iv
            JOIN vendas v ON v.id = iv.venda_id
            JOIN produtos p ON p.id = iv.produto_id
            {condition}
            ORDER BY iv.venda_id ASC, iv.posicao ASC
            """
        ).bindparams(*types),
        params or {},
    ).mappings().all()

    items: dict[str, list[SaleItem]] = {}
    for row in item_rows:
        items.setdefault(row["venda_id"], []).append(
            SaleItem(
                quantidade=int(row["quantidade"]),
                produto=Product(
                    id=row["produto_id"],
                    nome=row["nome"],
                    preco=to_money(row["preco"]),
                    imagem=row["imagem"],
                ),
            )
        )

    return [
        Sale(
            id=row["id"],
            data=row["data"],
            cliente=row["cliente"],
            forma_pagamento=PaymentMethod(row["forma_pagamento"]),
            total=to_money(row["total"]),
            itens=items.get(row["id"], []),
        )
        for row in headers
    ]


def list_sales(db: Session) -> list[Sale]:
    try:
        return _load_sales(db)
    except SQLAlchemyError as exc:
        logger.exception("Failed to list sales")
        raise PersistenceError("Failed to list sales") from exc


def list_sales_for_day(db: Session, day: date) -> list[Sale]:
    inicio, fim = day_window(day)
    try:
        return _load_sales(
            db,
            "WHERE v.data BETWEEN :inicio AND :fim",
            {"inicio": inicio, "fim": fim},
            WINDOW_TYPES,
        )
    except SQLAlchemyError as exc:
        logger.exception("Failed to list sales for %s", day.isoformat())
        raise PersistenceError("Failed to list sales for day") from exc


def get_sale(db: Session, sale_id: str) -> Sale:
    try:
        sales = _load_sales(db, "WHERE v.id = :venda_id", {"venda_id": sale_id})
    except SQLAlchemyError as exc:
        logger.exception("Failed to load sale %s", sale_id)
        raise PersistenceError("Failed to load sale") from exc

    if not sales:
        raise NotFoundError("Sale not found")
    return sales[0]
