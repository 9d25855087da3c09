"""
Seed a dev database with one user, one supplier and two price exports
(one ready, one still generating). Optionally uploads a placeholder file to
storage so the ready export's signed URL actually resolves.

Usage:
  python scripts/bootstrap_dev.py [--upload]
"""

import argparse
from shared.db.session import SessionLocal
from shared.db import models
from shared.storage.factory import build_storage

READY_PATH = "price-export/price-2025.xlsx"


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--upload", action="store_true", help="Upload a placeholder object for the ready export")
    args = ap.parse_args()

    db = SessionLocal()
    try:
        user = db.query(models.User).filter_by(email="dev@example.com").first()
        if user is None:
            user = models.User(name="Dev Buyer", email="dev@example.com")
            db.add(user)
        supplier = db.query(models.Supplier).filter_by(name="Dev Supplier").first()
        if supplier is None:
            supplier = models.Supplier(name="Dev Supplier")
            db.add(supplier)
        db.commit()

        ready = db.query(models.ExportRecord).filter_by(supplier_id=supplier.id, path=READY_PATH).first()
        if ready is None:
            ready = models.ExportRecord(user_id=user.id, supplier_id=supplier.id, path=READY_PATH, is_ready=True)
            db.add(ready)
            db.add(models.ExportRecord(user_id=user.id, supplier_id=supplier.id, is_auto=True))
            db.commit()

        if args.upload:
            storage = build_storage()
            if hasattr(storage, "ensure_bucket"):
                storage.ensure_bucket()
            if storage.object_exists(READY_PATH):
                print(f"Object already present: {READY_PATH}")
            else:
                storage.put_object(READY_PATH, b"placeholder price export\n")

        print("Bootstrap complete. Exports:")
        for e in db.query(models.ExportRecord).filter_by(supplier_id=supplier.id).all():
            print(f"- id={e.id} ready={e.is_ready} path={e.path}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
