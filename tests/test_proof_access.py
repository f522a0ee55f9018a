from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

import pytest
import pytest_asyncio

from conftest import jpeg_upload
from paycore.core.errors import (
    AuthorizationError,
    ExpiredError,
    IntegrityError,
    NotFoundError,
    QuarantinedError,
    SecurityError,
    ValidationError,
)
from paycore.infrastructure.storage import sha256_hex
from paycore.modules.audit import DENIED, SUCCESS, AuditFilter
from paycore.modules.audit.models import ADMIN_FILE_ACCESS, SIGNED_DOWNLOAD
from paycore.modules.proofs import SECURITY_HEADERS, UrlSigner
from paycore.modules.proofs.access import inline_disposition
from paycore.modules.scanning import EICAR_SIGNATURE


def signed_params(url: str) -> tuple[str, int, str]:
    params = parse_qs(urlsplit(url).query)
    return params["key"][0], int(params["expires"][0]), params["signature"][0]


@pytest_asyncio.fixture
async def proof(services):
    return await services.uploads.upload(jpeg_upload(pad_to=4096), 42, user_id="cashier-1")


async def test_fetch_issues_five_minute_urls(services, proof, clock, admin_token):
    descriptor = await services.access.fetch(proof.file_name, "finance_manager", admin_token, "10.0.0.5")

    assert descriptor.expires_at == clock.now + timedelta(minutes=5)
    assert descriptor.full_image.key == proof.storage_key
    assert descriptor.thumbnail.key == proof.thumbnail_key
    assert descriptor.accessed_by == "finance_manager"
    assert descriptor.headers == SECURITY_HEADERS
    assert descriptor.cache_control.startswith("private")
    [entry] = await services.audit.query(AuditFilter(action=ADMIN_FILE_ACCESS))
    assert entry.id == descriptor.audit_id
    assert entry.outcome == SUCCESS
    assert entry.client_ip == "10.0.0.5"
    assert entry.details["session"] == admin_token[:8] + "..."


async def test_quarantined_proof_is_refused_for_every_role(container, services, proof):
    await container._memory.proofs.update(proof.file_name, {"quarantine_status": "quarantined"})

    with pytest.raises(SecurityError) as caught:
        await services.access.fetch(proof.file_name, "admin")

    assert isinstance(caught.value, QuarantinedError)
    [entry] = await services.audit.query(AuditFilter(action=ADMIN_FILE_ACCESS))
    assert entry.outcome == DENIED
    assert entry.reason == "FILE_QUARANTINED"


@pytest.mark.parametrize(
    "role, code",
    [("customer", "FORBIDDEN_ROLE"), (None, "FORBIDDEN_ROLE"), ("finance_manager", "SESSION_REQUIRED")],
)
async def test_denied_roles_are_audited(services, proof, role, code):
    with pytest.raises(AuthorizationError) as caught:
        await services.access.fetch(proof.file_name, role)

    assert caught.value.code == code
    [entry] = await services.audit.query(AuditFilter(outcome=DENIED))
    assert entry.actor == (role or "anonymous")
    assert entry.reason == code


async def test_token_role_must_match(services, proof, admin_token):
    with pytest.raises(AuthorizationError) as caught:
        await services.access.fetch(proof.file_name, "support_admin", admin_token)
    assert caught.value.code == "ROLE_MISMATCH"


async def test_unknown_and_expired_proofs(services, proof, clock):
    with pytest.raises(NotFoundError):
        await services.access.fetch("missing.jpg", "admin")

    clock.advance(days=31)
    with pytest.raises(ExpiredError):
        await services.access.fetch(proof.file_name, "admin")


async def test_tampered_bytes_fail_integrity(services, storage, proof):
    await storage.put(proof.storage_key, b"tampered" * 200, proof.mime_type)

    with pytest.raises(IntegrityError):
        await services.access.fetch(proof.file_name, "admin")


async def test_missing_thumbnail(services, storage, proof):
    await storage.delete(proof.thumbnail_key)

    with pytest.raises(NotFoundError) as caught:
        await services.access.fetch(proof.file_name, "admin")
    assert caught.value.code == "STORAGE_OBJECT_MISSING"


async def infect_stored_proof(container, storage, proof) -> None:
    infected = b"\xff\xd8" + EICAR_SIGNATURE + b"\x00" * 2048
    await storage.put(proof.storage_key, infected, proof.mime_type)
    await container._memory.proofs.update(proof.file_name, {"checksum": sha256_hex(infected)})


async def test_rescan_quarantines_infected_stored_file(container, services, storage, proof):
    await infect_stored_proof(container, storage, proof)

    with pytest.raises(SecurityError) as caught:
        await services.access.fetch(proof.file_name, "admin")

    entry = await services.quarantine.get(caught.value.details["quarantine_id"])
    assert entry.source == "access_rescan"
    assert entry.subject_id == proof.file_name
    with pytest.raises(QuarantinedError):
        await services.access.fetch(proof.file_name, "admin")


async def test_released_proof_is_served_again(container, services, storage, proof):
    await infect_stored_proof(container, storage, proof)
    with pytest.raises(SecurityError) as caught:
        await services.access.fetch(proof.file_name, "admin")

    await services.quarantine.review(caught.value.details["quarantine_id"], "release", "admin")

    descriptor = await services.access.fetch(proof.file_name, "admin")
    assert descriptor.quarantine_status == "clean"
    released = await services.reviews.get(proof.file_name)
    assert released.scan_result["quarantine_release"]["released_by"] == "admin"


async def test_deleting_quarantine_entry_removes_flagged_proof(container, services, storage, proof):
    await infect_stored_proof(container, storage, proof)
    with pytest.raises(SecurityError) as caught:
        await services.access.fetch(proof.file_name, "admin")

    await services.quarantine.review(caught.value.details["quarantine_id"], "delete", "admin")

    assert await storage.get(proof.storage_key) is None
    assert await storage.get(proof.thumbnail_key) is None
    with pytest.raises(NotFoundError):
        await services.access.fetch(proof.file_name, "admin")


async def test_signed_url_serves_stored_bytes(services, storage, proof):
    descriptor = await services.access.fetch(proof.file_name, "admin")

    content = await services.access.open_signed(*signed_params(descriptor.full_image.url), client_ip="10.0.0.9")

    assert content.content == await storage.get(proof.storage_key)
    assert content.media_type == "image/jpeg"
    assert content.headers["Content-Disposition"] == "inline; filename=\"receipt.jpg\"; filename*=UTF-8''receipt.jpg"
    downloads = await services.audit.query(AuditFilter(action=SIGNED_DOWNLOAD))
    assert [entry.outcome for entry in downloads] == [SUCCESS]


async def test_signed_url_signature_and_expiry(container, services, proof, clock):
    descriptor = await services.access.fetch(proof.file_name, "admin")
    key, expires, signature = signed_params(descriptor.thumbnail.url)

    with pytest.raises(SecurityError) as caught:
        await services.access.open_signed(key, expires, "0" * len(signature))
    assert caught.value.code == "INVALID_SIGNATURE"
    with pytest.raises(SecurityError):
        await services.access.open_signed(key, expires + 60, signature)

    clock.advance(minutes=5, seconds=1)
    with pytest.raises(ExpiredError):
        await services.access.open_signed(key, expires, signature)
    with pytest.raises(ExpiredError):
        container.signer.verify(descriptor.thumbnail.url)


def test_signed_url_lives_until_its_reported_expiry(clock):
    signer = UrlSigner("test-secret-key-123", ttl_seconds=300)
    issued_at = clock.now + timedelta(milliseconds=750)

    signed = signer.sign("proofs/receipt.jpg", now=issued_at)

    assert signed.expires_at >= issued_at + timedelta(seconds=300)
    assert signed.expires_at == clock.now + timedelta(seconds=301)
    assert signer.verify(signed.url, now=signed.expires_at) == "proofs/receipt.jpg"
    with pytest.raises(ExpiredError):
        signer.verify(signed.url, now=signed.expires_at + timedelta(milliseconds=1))


def test_signer_rejects_malformed_url(container):
    with pytest.raises(ValidationError) as caught:
        container.signer.verify("/api/proofs/download?key=a")
    assert caught.value.code == "MALFORMED_SIGNED_URL"


@pytest.mark.parametrize(
    "original_name, expected",
    [
        ("receipt.jpg", "inline; filename=\"receipt.jpg\"; filename*=UTF-8''receipt.jpg"),
        ('bank "slip".png', "inline; filename=\"bank__slip_.png\"; filename*=UTF-8''bank%20%22slip%22.png"),
        ("رسید.jpg", "inline; filename=\"____.jpg\"; filename*=UTF-8''%D8%B1%D8%B3%DB%8C%D8%AF.jpg"),
    ],
)
def test_inline_disposition_is_header_safe(original_name, expected):
    header = inline_disposition(original_name)

    assert header == expected
    header.encode("latin-1")
