import pytest

from conftest import jpeg_upload, make_image
from paycore.core.errors import SecurityError, ValidationError
from paycore.modules.audit import AuditFilter
from paycore.modules.audit.models import PROOF_EXPIRED_CLEANUP, QUARANTINE_PURGED
from paycore.modules.proofs import DELETED, UploadedFile
from paycore.modules.quarantine.models import DELETED as QUARANTINE_DELETED
from paycore.modules.scanning import EICAR_SIGNATURE


async def test_sweep_removes_only_old_proofs(services, storage, clock):
    old = await services.uploads.upload(jpeg_upload(pad_to=2048), 80, user_id="u80")
    clock.advance(days=20)
    recent = await services.uploads.upload(jpeg_upload(pad_to=2048), 81, user_id="u81")
    clock.advance(days=11)

    report = await services.retention.run()

    assert (report.files_scanned, report.files_deleted) == (1, 1)
    assert report.space_reclaimed == old.file_size
    assert report.errors == []
    assert (await services.reviews.get(old.file_name)).status == DELETED
    assert await storage.get(old.storage_key) is None
    assert await storage.get(recent.storage_key) is not None
    [entry] = await services.audit.query(AuditFilter(action=PROOF_EXPIRED_CLEANUP))
    assert entry.subject_id == old.file_name


async def test_sweep_purges_expired_quarantine(services, storage, clock):
    infected = UploadedFile("receipt.jpg", "image/jpeg", make_image(pad_to=2048) + EICAR_SIGNATURE)
    with pytest.raises(SecurityError):
        await services.uploads.upload(infected, 82, user_id="u82")
    [entry] = await services.quarantine.list()
    clock.advance(days=31)

    report = await services.retention.run()

    assert report.quarantine_purged == 1
    assert (await services.quarantine.get(entry.id)).status == QUARANTINE_DELETED
    assert await storage.get(entry.isolation_key) is None
    assert len(await services.audit.query(AuditFilter(action=QUARANTINE_PURGED))) == 1


async def test_failed_file_is_reported_and_sweep_continues(services, storage, clock):
    first = await services.uploads.upload(jpeg_upload(pad_to=2048), 83, user_id="u83")
    second = await services.uploads.upload(jpeg_upload(pad_to=2048), 84, user_id="u84")
    original_delete = storage.delete

    async def flaky_delete(key):
        if key == first.storage_key:
            raise OSError("disk unavailable")
        return await original_delete(key)

    storage.delete = flaky_delete
    clock.advance(days=40)

    report = await services.retention.run()

    assert report.files_scanned == 2
    assert report.files_deleted == 1
    assert report.errors == [{"file_name": first.file_name, "error": "disk unavailable"}]
    assert (await services.reviews.get(second.file_name)).status == DELETED


async def test_retention_period_and_status(container, services, clock):
    assert services.retention.set_retention_days(7) == 7
    for days in (0, 366, "30", True):
        with pytest.raises(ValidationError):
            services.retention.set_retention_days(days)

    await services.retention.run()

    async with container.unit_of_work() as later:
        status = later.retention.status()
    assert status.retention_days == 7
    assert status.runs == 1
    assert status.last_run_at == clock.now
