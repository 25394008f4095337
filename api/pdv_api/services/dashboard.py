import logging
from datetime import date

from sqlalchemy import Date, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pdv_api.core.config import settings
from pdv_api.core.errors import DashboardError, PersistenceError
from pdv_api.schemas.sales import DashboardSummary, PaymentMethod, TopProduct
from pdv_api.services.sales import WINDOW_TYPES, day_window, to_money

logger = logging.getLogger(__name__)

TOTALS_BY_PAYMENT = text(
    """
    SELECT forma_pagamento, SUM(total) AS total
    FROM vendas
    WHERE data BETWEEN :inicio AND :fim
    GROUP BY forma_pagamento
    """
).bindparams(*WINDOW_TYPES)

# Ties on quantity are ordered by product name so the ranking is stable.
TOP_PRODUCTS = text(
    """
    SELECT p.nome, SUM(iv.quantidade) AS quantidade
    FROM itens_venda iv
    JOIN produtos p ON iv.produto_id = p.id
    JOIN vendas v ON iv.venda_id = v.id
    WHERE v.data BETWEEN :inicio AND :fim
    GROUP BY p.nome
    ORDER BY SUM(iv.quantidade) DESC, p.nome ASC
    LIMIT :limite
    """
).bindparams(*WINDOW_TYPES)

GRAND_TOTAL = text(
    "SELECT COALESCE(SUM(total), 0) AS total FROM vendas WHERE data BETWEEN :inicio AND :fim"
).bindparams(*WINDOW_TYPES)

TRACE_FOR_DAY = text("SELECT conteudo FROM traces WHERE data = :data").bindparams(
    bindparam("data", type_=Date())
)

TRACE_DAYS = text("SELECT data FROM traces ORDER BY data ASC").columns(data=Date())


def get_dashboard(db: Session, day: date, limit: int | None = None) -> DashboardSummary:
    """Revenue per payment method, grand total and best sellers for ``day``.

    All four payment methods are always present; methods without sales
    report zero. The grand total comes from its own ``SUM`` rather than
    from adding the per-method buckets.
    """
    inicio, fim = day_window(day)
    window = {"inicio": inicio, "fim": fim}

    try:
        payments = db.execute(TOTALS_BY_PAYMENT, window).mappings().all()
        limite = settings.top_products_limit if limit is None else limit
        products = db.execute(TOP_PRODUCTS, {**window, "limite": limite}).mappings().all()
        grand_total = db.execute(GRAND_TOTAL, window).scalar()
    except SQLAlchemyError as exc:
        logger.exception("Failed to compute dashboard for %s", day.isoformat())
        raise DashboardError() from exc

    by_method = {method.value: to_money(0) for method in PaymentMethod}
    for row in payments:
        by_method[row["forma_pagamento"]] = to_money(row["total"])

    return DashboardSummary(
        **by_method,
        total_vendas=to_money(grand_total),
        produtos_mais_vendidos=[
            TopProduct(nome=row["nome"], quantidade=int(row["quantidade"])) for row in products
        ],
    )


def get_trace_for_day(db: Session, day: date) -> str:
    try:
        content = db.execute(TRACE_FOR_DAY, {"data": day}).scalar()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load trace for %s", day.isoformat())
        raise PersistenceError("Failed to load trace") from exc

    return content or ""


def list_trace_days(db: Session) -> list[date]:
    try:
        rows = db.execute(TRACE_DAYS).scalars().all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list trace days")
        raise PersistenceError("Failed to list trace days") from exc

    return list(rows)
