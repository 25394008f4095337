import logging
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from pdv_api.core.config import settings
from pdv_api.core.errors import ConflictError, NotFoundError, PdvError
from pdv_api.core.logging_config import configure_logging
from pdv_api.db.schema import init_schema
from pdv_api.db.session import engine, get_db
from pdv_api.schemas.products import MessageResponse, Product, ProductUpdate
from pdv_api.schemas.sales import DashboardSummary, Sale
from pdv_api.services import dashboard, products, sales

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level, settings.log_format)
    if settings.auto_create_schema:
        init_schema(engine)
    logger.info("PDV API started")
    yield


app = FastAPI(title="PDV API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def to_http_error(exc: PdvError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/produtos", response_model=list[Product])
def list_products(db: Session = Depends(get_db)):
    try:
        return products.list_products(db)
    except PdvError as exc:
        raise to_http_error(exc)


@app.get("/api/produtos/{product_id}", response_model=Product)
def get_product(product_id: str, db: Session = Depends(get_db)):
    try:
        return products.get_product(db, product_id)
    except PdvError as exc:
        raise to_http_error(exc)


@app.post(
    "/api/produtos",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(payload: Product, db: Session = Depends(get_db)):
    try:
        products.create_product(db, payload)
    except PdvError as exc:
        raise to_http_error(exc)
    return MessageResponse(message="Product created")


@app.put("/api/produtos/{product_id}", response_model=MessageResponse)
def update_product(product_id: str, payload: ProductUpdate, db: Session = Depends(get_db)):
    try:
        products.update_product(db, product_id, payload)
    except PdvError as exc:
        raise to_http_error(exc)
    return MessageResponse(message="Product updated")


@app.delete("/api/produtos/{product_id}", response_model=MessageResponse)
def delete_product(product_id: str, db: Session = Depends(get_db)):
    try:
        products.delete_product(db, product_id)
    except PdvError as exc:
        raise to_http_error(exc)
    return MessageResponse(message="Product deleted")


@app.get("/api/vendas", response_model=list[Sale])
def list_sales(db: Session = Depends(get_db)):
    try:
        return sales.list_sales(db)
    except PdvError as exc:
        raise to_http_error(exc)


@app.get("/api/vendas/data/{day}", response_model=list[Sale])
def list_sales_for_day(day: date, db: Session = Depends(get_db)):
    try:
        return sales.list_sales_for_day(db, day)
    except PdvError as exc:
        raise to_http_error(exc)


@app.get("/api/vendas/{sale_id}", response_model=Sale)
def get_sale(sale_id: str, db: Session = Depends(get_db)):
    try:
        return sales.get_sale(db, sale_id)
    except PdvError as exc:
        raise to_http_error(exc)


@app.post(
    "/api/vendas",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_sale(payload: Sale, db: Session = Depends(get_db)):
    try:
        sales.record_sale(db, payload)
    except PdvError as exc:
        raise to_http_error(exc)
    return MessageResponse(message="Sale recorded")


@app.get("/api/dashboard/{day}", response_model=DashboardSummary)
def get_dashboard(day: date, db: Session = Depends(get_db)):
    try:
        return dashboard.get_dashboard(db, day)
    except PdvError as exc:
        raise to_http_error(exc)


@app.get("/api/traces/data/{day}", response_model=str)
def get_trace_for_day(day: date, db: Session = Depends(get_db)):
    try:
        return dashboard.get_trace_for_day(db, day)
    except PdvError as exc:
        raise to_http_error(exc)


@app.get("/api/traces/datas", response_model=list[date])
def list_trace_days(db: Session = Depends(get_db)):
    try:
        return dashboard.list_trace_days(db)
    except PdvError as exc:
        raise to_http_error(exc)
