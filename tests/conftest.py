import os

# Settings and the SQLAlchemy engine are built at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_DRIVER", "s3")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


class FakeStorage:
    """Storage double that returns a fixed URL and records every call."""

    def __init__(self, url="https://temporary-url.com/supplier-price-export-2025.xlsx"):
        self.url = url
        self.calls = []

    def temporary_url(self, path, expires_at):
        self.calls.append((path, expires_at))
        return self.url

    def ping(self):
        return True


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def db_session():
    from shared.db.models import Base

    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = Session()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def make_export(db_session):
    from shared.db import models

    user = models.User(name="Buyer", email="buyer@example.com")
    supplier = models.Supplier(name="Acme Supply")
    db_session.add_all([user, supplier])
    db_session.commit()

    def _make(path="price-export/price-2025.xlsx", is_ready=True, **kw):
        rec = models.ExportRecord(user_id=user.id, supplier_id=supplier.id, path=path, is_ready=is_ready, **kw)
        db_session.add(rec)
        db_session.commit()
        return rec

    return _make
