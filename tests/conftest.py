from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from expense_tracker.db import init_db
from expense_tracker.main import app, get_db
from expense_tracker.models import Expense
from expense_tracker.services import ExpenseService


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def service(db):
    return ExpenseService(db)


@pytest.fixture
def make_expense(db, service):
    expenses = Expense.__table__

    def _make(name="Coffee", expense_type="Food", amount=5, on=date(2024, 1, 1), created=None):
        saved = service.save(
            Expense(name=name, expense_type=expense_type, amount=Decimal(amount), date=on)
        )
        if created is not None:
            # 创建时间只能由数据库写，测试里直接改表
            db.execute(
                expenses.update().where(expenses.c.id == saved.id).values(creation_date=created)
            )
            db.commit()
            db.refresh(saved)
        return saved

    return _make


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def t0():
    return datetime(2024, 1, 1, 8, 30)
