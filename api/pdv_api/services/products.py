import logging

from sqlalchemy import Numeric, bindparam, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pdv_api.core.errors import ConflictError, NotFoundError, PersistenceError
from pdv_api.schemas.products import Product, ProductUpdate
from pdv_api.services.sales import to_money

logger = logging.getLogger(__name__)

PRICE_TYPE = bindparam("preco", type_=Numeric(10, 2))


def _to_product(row) -> Product:
    return Product(
        id=row["id"],
        nome=row["nome"],
        preco=to_money(row["preco"]),
        imagem=row["imagem"],
    )


def list_products(db: Session) -> list[Product]:
    try:
        rows = db.execute(
            text("SELECT id, nome, preco, imagem FROM produtos ORDER BY nome ASC, id ASC")
        ).mappings().all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list products")
        raise PersistenceError("Failed to list products") from exc

    return [_to_product(row) for row in rows]


def get_product(db: Session, product_id: str) -> Product:
    try:
        row = db.execute(
            text("SELECT id, nome, preco, imagem FROM produtos WHERE id = :id"),
            {"id": product_id},
        ).mappings().first()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load product %s", product_id)
        raise PersistenceError("Failed to load product") from exc

    if not row:
        raise NotFoundError("Product not found")
    return _to_product(row)


def create_product(db: Session, product: Product) -> None:
    try:
        db.execute(
            text(
                "INSERT INTO produtos (id, nome, preco, imagem) VALUES (:id, :nome, :preco, :imagem)"
            ).bindparams(PRICE_TYPE),
            {
                "id": product.id,
                "nome": product.nome,
                "preco": to_money(product.preco),
                "imagem": product.imagem,
            },
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Product %s already exists", product.id)
        raise ConflictError("Product already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create product %s", product.id)
        raise PersistenceError("Failed to create product") from exc


def update_product(db: Session, product_id: str, product: ProductUpdate) -> None:
    try:
        result = db.execute(
            text(
                "UPDATE produtos SET nome = :nome, preco = :preco, imagem = :imagem WHERE id = :id"
            ).bindparams(PRICE_TYPE),
            {
                "id": product_id,
                "nome": product.nome,
                "preco": to_money(product.preco),
                "imagem": product.imagem,
            },
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError("Product not found")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update product %s", product_id)
        raise PersistenceError("Failed to update product") from exc


def delete_product(db: Session, product_id: str) -> None:
    try:
        result = db.execute(text("DELETE FROM produtos WHERE id = :id"), {"id": product_id})
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError("Product not found")
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Product %s is referenced by recorded sales", product_id)
        raise ConflictError("Product has recorded sales") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete product %s", product_id)
        raise PersistenceError("Failed to delete product") from exc
