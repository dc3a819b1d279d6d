# expense_tracker/main.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import DEFAULT_PAGE_SIZE, LOG_LEVEL, MAX_PAGE_SIZE
from .db import SessionLocal, init_db
from .errors import NotFoundError, ValidationError
from .formatting import format_money
from .models import Expense, ExpenseCategory
from .paging import Page, PageRequest
from .schemas import CategoryIn, CategoryOut, ExpenseIn, ExpenseOut, ExpensePage, ExpenseTotal
from .services import ExpenseService

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = FastAPI(title="Expense Tracker")


# ---------- DB ----------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_service(db: Session = Depends(get_db)) -> ExpenseService:
    return ExpenseService(db)


@app.on_event("startup")
def on_startup():
    # 自动建表
    init_db()
    logger.info("database ready")


def _page_out(page: Page) -> ExpensePage:
    return ExpensePage(
        items=[ExpenseOut.model_validate(e) for e in page.items],
        page=page.page,
        size=page.size,
        total=page.total,
        total_pages=page.total_pages,
        has_next=page.has_next,
    )


# ---------- Health ----------
@app.get("/health")
def health():
    return {"ok": True}


# ---------- Expenses ----------
@app.get("/expenses", response_model=ExpensePage)
def list_expenses(
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    expense_type: Optional[str] = None,
    sort: Optional[str] = None,
    service: ExpenseService = Depends(get_service),
):
    if (year is None) != (month is None):
        raise HTTPException(status_code=400, detail="year and month must be given together")

    page_request = PageRequest(page=page, size=size, sort=sort)
    expense_type = (expense_type or "").strip()

    if year is not None and expense_type:
        result = service.get_expenses_by_year_month_and_type(year, month, expense_type, page_request)
    elif year is not None:
        result = service.get_expenses_by_year_month(year, month, page_request)
    elif expense_type:
        result = service.get_expenses_by_type(expense_type, page_request)
    else:
        result = service.find_all_paged(page_request)

    return _page_out(result)


@app.get("/expenses/total", response_model=ExpenseTotal)
def total_amount(service: ExpenseService = Depends(get_service)):
    total = service.get_total_amount(service.find_all())
    return ExpenseTotal(total=total, display=format_money(total))


@app.get("/expenses/export")
def export_csv(service: ExpenseService = Depends(get_service)):
    csv_text = service.convert_to_csv(service.find_all())
    filename = f"expenses_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/expenses/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, service: ExpenseService = Depends(get_service)):
    return service.find_by_id(expense_id)


@app.post("/expenses", response_model=ExpenseOut, status_code=201)
def create_expense(payload: ExpenseIn, service: ExpenseService = Depends(get_service)):
    return service.save(Expense(**payload.model_dump()))


@app.put("/expenses/{expense_id}", response_model=ExpenseOut)
def replace_expense(
    expense_id: int, payload: ExpenseIn, service: ExpenseService = Depends(get_service)
):
    service.find_by_id(expense_id)
    return service.save(Expense(id=expense_id, **payload.model_dump()))


@app.delete("/expenses/{expense_id}", status_code=204)
def delete_expense(expense_id: int, service: ExpenseService = Depends(get_service)):
    service.delete_by_id(expense_id)
    return Response(status_code=204)


# ---------- Categories ----------
@app.get("/categories", response_model=List[CategoryOut])
def list_categories(service: ExpenseService = Depends(get_service)):
    return service.find_all_categories()


@app.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryIn, service: ExpenseService = Depends(get_service)):
    return service.save_category(ExpenseCategory(**payload.model_dump()))


@app.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, service: ExpenseService = Depends(get_service)):
    service.delete_category_by_id(category_id)
    return Response(status_code=204)


# ---------- Errors ----------
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message, "id": exc.entity_id})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"field": exc.field, "detail": exc.message})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    return JSONResponse(status_code=409, content={"detail": "The record conflicts with existing data"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "detail": str(exc)},
    )
