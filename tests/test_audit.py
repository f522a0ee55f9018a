import csv
import io
import json

import pytest

from paycore.core.errors import ValidationError
from paycore.modules.audit import DENIED, SUCCESS, AuditFilter, mask_token


async def seed(audit, clock):
    await audit.record("admin_file_access", actor="admin", subject_id="55_u_1.jpg", outcome=SUCCESS, order_id=55)
    clock.advance(hours=1)
    await audit.record(
        "admin_file_access",
        actor="customer",
        subject_id="55_u_1.jpg",
        outcome=DENIED,
        order_id=55,
        reason="FORBIDDEN_ROLE",
        client_ip="10.1.1.1",
    )
    clock.advance(hours=1)
    await audit.record("file_upload", actor="u9", subject_id="9_u9_2.png", outcome=SUCCESS, order_id=9)


async def test_entries_come_back_newest_first(services, clock):
    await seed(services.audit, clock)

    entries = await services.audit.query()

    assert [entry.subject_id for entry in entries] == ["9_u9_2.png", "55_u_1.jpg", "55_u_1.jpg"]
    assert len({entry.id for entry in entries}) == 3
    assert all(entry.id.startswith("AUDIT_") for entry in entries)


async def test_filters_combine(services, clock):
    start = clock.now
    await seed(services.audit, clock)

    assert len(await services.audit.query(AuditFilter(order_id=55))) == 2
    assert len(await services.audit.query(AuditFilter(subject="55_u"))) == 2
    assert len(await services.audit.query(AuditFilter(order_id=55, outcome=DENIED))) == 1
    assert len(await services.audit.query(AuditFilter(action="file_upload", actor="u9"))) == 1
    assert len(await services.audit.query(AuditFilter(start=start, end=start))) == 1


async def test_json_export_carries_compliance_block(services, clock):
    await seed(services.audit, clock)

    exported = await services.audit.export("json", AuditFilter(order_id=55), exported_by="auditor")

    payload = json.loads(exported.content)
    assert exported.media_type == "application/json"
    assert payload["total_records"] == 2
    assert payload["exported_by"] == "auditor"
    assert payload["filters"] == {"order_id": 55}
    assert payload["compliance"]["audit_standard"] == "ISO_27001"
    assert payload["data"][0]["reason"] == "FORBIDDEN_ROLE"


async def test_csv_export(services, clock):
    await seed(services.audit, clock)

    exported = await services.audit.export("CSV")

    rows = list(csv.DictReader(io.StringIO(exported.content)))
    assert exported.media_type == "text/csv"
    assert len(rows) == 3
    assert rows[1]["client_ip"] == "10.1.1.1"
    assert json.loads(rows[0]["details"]) == {}


async def test_export_rejects_unknown_format(services):
    with pytest.raises(ValidationError):
        await services.audit.export("xml")


def test_mask_token():
    assert mask_token(None) is None
    assert mask_token("abcdefghijkl") == "abcdefgh..."
