import pytest

from conftest import jpeg_upload
from paycore.core.errors import AuthorizationError, NotFoundError, StateError
from paycore.modules.audit import AuditFilter
from paycore.modules.audit.models import PROOF_DELETED, PROOF_REVIEWED
from paycore.modules.proofs import DELETED, PENDING_VERIFICATION, REJECTED, UPLOADED, VERIFIED
from paycore.modules.transactions import COMPLETED


async def test_submit_then_reject(services, admin_token):
    proof = await services.uploads.upload(jpeg_upload(pad_to=2048), 70, user_id="u70")
    assert proof.status == UPLOADED

    submitted = await services.reviews.submit(proof.file_name)
    assert [item.file_name for item in await services.reviews.queue()] == [proof.file_name]

    outcome = await services.reviews.review(
        submitted.file_name, False, "finance_manager", admin_token, notes="amount does not match"
    )

    assert outcome.proof.status == REJECTED
    assert outcome.proof.reviewed_by == "finance_manager"
    assert outcome.proof.review_notes == "amount does not match"
    assert outcome.verification is None
    assert await services.reviews.queue() == []
    with pytest.raises(StateError):
        await services.reviews.submit(proof.file_name)


async def test_approval_verifies_linked_transaction(services):
    transaction = await services.checkout.charge_wallet("jazzcash", 1500, 71, "03001234567")
    proof = await services.uploads.upload(jpeg_upload(pad_to=2048), 71, transaction.transaction_id, "u71")
    assert proof.status == PENDING_VERIFICATION

    outcome = await services.reviews.review(proof.file_name, True, "admin")

    assert outcome.proof.status == VERIFIED
    assert outcome.verification.verified is True
    assert outcome.verification.transaction.status == COMPLETED
    [entry] = await services.audit.query(AuditFilter(action=PROOF_REVIEWED))
    assert entry.details["transaction_id"] == transaction.transaction_id


async def test_review_requires_payment_manager(services):
    proof = await services.uploads.upload(jpeg_upload(pad_to=2048), 72, user_id="u72")
    await services.reviews.submit(proof.file_name)

    with pytest.raises(AuthorizationError):
        await services.reviews.review(proof.file_name, True, "support_admin")

    await services.reviews.review(proof.file_name, True, "admin")
    with pytest.raises(StateError):
        await services.reviews.review(proof.file_name, False, "admin")
    with pytest.raises(NotFoundError):
        await services.reviews.review("missing.jpg", True, "admin")


async def test_soft_delete_keeps_stored_bytes(services, storage):
    proof = await services.uploads.upload(jpeg_upload(pad_to=2048), 73, user_id="u73")

    deleted = await services.reviews.soft_delete(proof.file_name, "admin")

    assert deleted.status == DELETED
    assert deleted.deleted_by == "admin"
    assert await storage.get(proof.storage_key) is not None
    with pytest.raises(StateError):
        await services.reviews.soft_delete(proof.file_name, "admin")
    with pytest.raises(NotFoundError):
        await services.access.fetch(proof.file_name, "admin")
    assert len(await services.audit.query(AuditFilter(action=PROOF_DELETED))) == 1
