from shared.db import models


def test_new_export_defaults_to_not_ready(db_session, make_export):
    rec = make_export(path=None, is_ready=False)
    db_session.refresh(rec)
    assert rec.is_ready is False
    assert rec.is_auto is False
    assert rec.is_send is False
    assert rec.is_downloadable is False
    assert rec.created_at is not None


def test_downloadable_requires_ready_and_path():
    assert models.ExportRecord(is_ready=True, path="a/b.xlsx").is_downloadable is True
    assert models.ExportRecord(is_ready=True, path="").is_downloadable is False
    assert models.ExportRecord(is_ready=False, path="a/b.xlsx").is_downloadable is False


def test_export_relations(db_session, make_export):
    rec = make_export()
    assert rec.user.name == "Buyer"
    assert rec.supplier.name == "Acme Supply"
