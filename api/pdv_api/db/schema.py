"""Table definitions for the point-of-sale store.

The statements stick to the SQL shared by PostgreSQL and SQLite so the
same schema backs production and the test-suite.
"""

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS produtos (
      id VARCHAR(64) PRIMARY KEY,
      nome VARCHAR(255) NOT NULL,
      preco NUMERIC(10, 2) NOT NULL,
      imagem TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vendas (
      id VARCHAR(64) PRIMARY KEY,
      data TIMESTAMP NOT NULL,
      cliente VARCHAR(255) NOT NULL DEFAULT '',
      forma_pagamento VARCHAR(16) NOT NULL
        CHECK (forma_pagamento IN ('pix', 'credito', 'debito', 'dinheiro')),
      total NUMERIC(10, 2) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_vendas_data ON vendas (data)",
    """
    CREATE TABLE IF NOT EXISTS itens_venda (
      venda_id VARCHAR(64) NOT NULL REFERENCES vendas (id),
      posicao INTEGER NOT NULL,
      produto_id VARCHAR(64) NOT NULL REFERENCES produtos (id),
      quantidade INTEGER NOT NULL CHECK (quantidade >= 1),
      PRIMARY KEY (venda_id, posicao)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_itens_venda_produto ON itens_venda (produto_id)",
    """
    CREATE TABLE IF NOT EXISTS traces (
      data DATE PRIMARY KEY,
      conteudo TEXT NOT NULL
    )
    """,
)


def init_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))
    logger.info("Schema ready on %s", engine.url.render_as_string(hide_password=True))
