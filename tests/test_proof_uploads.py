import io
import re
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from conftest import jpeg_upload, make_image
from paycore.api.routers.proofs import upload_proof
from paycore.core.errors import SecurityError, StateError, ValidationError
from paycore.modules.audit import AuditFilter
from paycore.modules.audit.models import FILE_QUARANTINED, FILE_UPLOAD
from paycore.modules.proofs import PENDING_VERIFICATION, UPLOADED, ProofUploadPipeline, UploadedFile
from paycore.modules.proofs.imaging import make_thumbnail
from paycore.modules.scanning import EICAR_SIGNATURE

GENERATED_NAME = re.compile(r"^55_cashier-7_\d+_[a-z0-9]+\.(jpg|jpeg|png|webp)$")


def pipeline_with_scanner(container, services, scanner) -> ProofUploadPipeline:
    return ProofUploadPipeline(
        container._memory.proofs,
        container.storage,
        scanner,
        services.quarantine,
        services.audit,
        services.ledger,
    )


async def test_clean_two_megabyte_jpeg_is_accepted(services, storage):
    upload = jpeg_upload("receipt.jpg", width=400, height=400, pad_to=2 * 1024 * 1024)

    proof = await services.uploads.upload(upload, 55, user_id="cashier-7")

    assert GENERATED_NAME.match(proof.file_name)
    assert proof.status == UPLOADED
    assert (proof.width, proof.height) == (400, 400)
    assert proof.file_size == 2 * 1024 * 1024
    assert proof.bucket == storage.bucket
    assert proof.thumbnail_key.endswith("_thumb.jpg")
    assert set(storage.keys()) == {proof.storage_key, proof.thumbnail_key}
    assert (await storage.stat(proof.storage_key)).checksum == proof.checksum
    [entry] = await services.audit.query(AuditFilter(action=FILE_UPLOAD))
    assert entry.subject_id == proof.file_name


async def test_tiny_file_never_reaches_scanner(container, services):
    scanner = AsyncMock()
    pipeline = pipeline_with_scanner(container, services, scanner)
    upload = UploadedFile(file_name="receipt.png", content_type="image/png", content=b"\x89PNG" + b"\x00" * 46)

    with pytest.raises(ValidationError) as caught:
        await pipeline.upload(upload, 1, user_id="u1")

    assert caught.value.code == "FILE_TOO_SMALL"
    scanner.scan.assert_not_called()


async def test_double_extension_is_rejected(container, services):
    scanner = AsyncMock()
    pipeline = pipeline_with_scanner(container, services, scanner)
    upload = UploadedFile(file_name="invoice.exe.png", content_type="image/png", content=make_image(fmt="PNG", pad_to=2048))

    with pytest.raises(ValidationError) as caught:
        await pipeline.upload(upload, 1, user_id="u1")

    assert caught.value.code == "SUSPICIOUS_FILENAME"
    scanner.scan.assert_not_called()


async def test_ten_byte_file_leaves_no_trace(services, storage):
    upload = UploadedFile(file_name="empty.jpg", content_type="image/jpeg", content=b"\x00" * 10)

    with pytest.raises(ValidationError) as caught:
        await services.uploads.upload(upload, 3, user_id="u3")

    assert "too small" in caught.value.message
    assert await services.reviews.list_by_order(3) == []
    assert await services.audit.query() == []
    assert storage.keys() == []


@pytest.mark.parametrize(
    "upload, code",
    [
        (UploadedFile("receipt.gif", "image/gif", b"GIF89a" + b"\x00" * 2000), "INVALID_FILE_TYPE"),
        (UploadedFile("receipt.bmp", "image/png", b"\x00" * 2000), "INVALID_FILE_EXTENSION"),
        (UploadedFile("big.jpg", "image/jpeg", b"\xff\xd8" + b"\x00" * (6 * 1024 * 1024)), "FILE_TOO_LARGE"),
        (UploadedFile("x" * 300 + ".jpg", "image/jpeg", make_image(pad_to=2048)), "FILENAME_TOO_LONG"),
        (UploadedFile("broken.jpg", "image/jpeg", b"\xff\xd8" + b"\x01" * 4000), "INVALID_IMAGE"),
        (UploadedFile("small.jpg", "image/jpeg", make_image(width=50, height=50, pad_to=2048)), "IMAGE_TOO_SMALL"),
    ],
)
async def test_validation_failures(services, upload, code):
    with pytest.raises(ValidationError) as caught:
        await services.uploads.upload(upload, 4, user_id="u4")
    assert caught.value.code == code


async def test_infected_upload_is_quarantined(services, storage):
    content = make_image(pad_to=4096) + EICAR_SIGNATURE
    upload = UploadedFile(file_name="receipt.jpg", content_type="image/jpeg", content=content)

    with pytest.raises(SecurityError) as caught:
        await services.uploads.upload(upload, 8, user_id="u8")

    quarantine_id = caught.value.details["quarantine_id"]
    entry = await services.quarantine.get(quarantine_id)
    assert "Eicar-Test-Signature" in entry.threats
    assert entry.order_id == 8
    assert await storage.get(entry.isolation_key) == content
    assert await services.reviews.list_by_order(8) == []
    [audited] = await services.audit.query(AuditFilter(action=FILE_QUARANTINED))
    assert audited.details["quarantine_id"] == quarantine_id


async def test_known_transaction_moves_proof_to_review(services):
    transaction = await services.checkout.charge_wallet("easypaisa", 700, 60, "03001234567")

    proof = await services.uploads.upload(jpeg_upload(pad_to=2048), 60, transaction.transaction_id, "u60")

    assert proof.status == PENDING_VERIFICATION
    assert proof.transaction_id == transaction.transaction_id
    assert await services.ledger.get(transaction.transaction_id) == transaction


async def test_proof_is_attached_to_a_failed_transaction(services):
    with pytest.raises(ValidationError):
        await services.checkout.charge_wallet("jazzcash", 100, 62, "99999")
    [failed] = await services.ledger.list_by_order(62)

    proof = await services.uploads.upload(jpeg_upload(pad_to=2048), 62, failed.transaction_id, "u62")

    assert proof.status == PENDING_VERIFICATION
    assert (await services.ledger.get(failed.transaction_id)).proof_file_name == proof.file_name


async def test_attach_proof_refuses_completed_transactions(services):
    transaction = await services.checkout.charge_wallet("jazzcash", 50, 63, "03001234567")

    with pytest.raises(StateError):
        await services.ledger.attach_proof(transaction.transaction_id, "63_u63_1_abc.jpg")


async def test_failure_after_storing_removes_objects(container, services, storage):
    services.audit.record = AsyncMock(side_effect=RuntimeError("audit store down"))

    with pytest.raises(RuntimeError):
        await services.uploads.upload(jpeg_upload(pad_to=2048), 61, user_id="u61")

    assert storage.keys() == []
    assert await services.reviews.list_by_order(61) == []


def truncated_png() -> bytes:
    buffer = io.BytesIO()
    Image.effect_noise((400, 400), 64).save(buffer, format="PNG")
    data = buffer.getvalue()
    return data[: len(data) // 2]


async def test_truncated_image_is_rejected_before_storing(services, storage):
    upload = UploadedFile("receipt.png", "image/png", truncated_png())

    with pytest.raises(ValidationError) as caught:
        await services.uploads.upload(upload, 64, user_id="u64")

    assert caught.value.code == "INVALID_IMAGE"
    assert storage.keys() == []
    assert await services.reviews.list_by_order(64) == []


def test_thumbnail_of_corrupt_data_is_a_validation_error():
    with pytest.raises(ValidationError) as caught:
        make_thumbnail(truncated_png(), "png")

    assert caught.value.code == "INVALID_IMAGE"


class RecordingUploadFile:
    filename = "receipt.jpg"
    content_type = "image/jpeg"

    def __init__(self, content: bytes) -> None:
        self.content = content
        self.requested: list[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.requested.append(size)
        return self.content if size < 0 else self.content[:size]


async def test_upload_route_reads_at_most_one_byte_past_the_limit(services):
    limit = services.uploads.policy.max_size_bytes
    file = RecordingUploadFile(make_image(pad_to=limit + 4096))

    with pytest.raises(ValidationError) as caught:
        await upload_proof(
            file=file, order_id=65, transaction_id=None, user_id=None, services=services, client_ip=None
        )

    assert caught.value.code == "FILE_TOO_LARGE"
    assert file.requested == [limit + 1]
