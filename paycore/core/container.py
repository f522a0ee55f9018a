"""Dependency container wiring repositories, shared collaborators and services."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from paycore.core.config import Settings, get_settings
from paycore.core.errors import PaymentError
from paycore.core.identifiers import Clock, utcnow
from paycore.core.locks import KeyedLocks
from paycore.core.security import Authorizer, SessionTokenService
from paycore.infrastructure.storage import InMemoryObjectStorage, LocalObjectStorage, ObjectStorage
from paycore.modules.audit import AuditRepository, AuditTrail
from paycore.modules.automation import PeriodicJob
from paycore.modules.checkout import CheckoutService
from paycore.modules.gateways import GatewayRouter, build_simulated_router
from paycore.modules.proofs import (
    ProofRepository,
    ProofRetentionService,
    ProofReviewService,
    ProofUploadPipeline,
    QuarantinedProofs,
    RetentionTracker,
    SecureProofAccessGateway,
    UploadPolicy,
    UrlSigner,
)
from paycore.modules.quarantine import QuarantineRegistry, QuarantineRepository
from paycore.modules.recurring import RecurringPaymentScheduler, RecurringRepository, WalletRecurringPayer
from paycore.modules.scanning import MalwareScanner, SignatureScanner
from paycore.modules.transactions import SimulatedVerifier, TransactionLedger, TransactionRepository
from paycore.modules.vendors import VendorBillBook, VendorBillRepository, VendorDirectory, VendorRepository
from paycore.modules.wallets import WalletLedger, WalletRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RepositorySet:
    transactions: TransactionRepository
    wallets: WalletRepository
    audit: AuditRepository
    quarantine: QuarantineRepository
    proofs: ProofRepository
    vendors: VendorRepository
    bills: VendorBillRepository
    recurring: RecurringRepository


@dataclass(slots=True)
class ServiceSet:
    """Every service bound to one unit of work."""

    ledger: TransactionLedger
    checkout: CheckoutService
    wallet: WalletLedger
    vendors: VendorDirectory
    bills: VendorBillBook
    recurring: RecurringPaymentScheduler
    audit: AuditTrail
    quarantine: QuarantineRegistry
    uploads: ProofUploadPipeline
    reviews: ProofReviewService
    access: SecureProofAccessGateway
    retention: ProofRetentionService


def memory_repositories() -> RepositorySet:
    from paycore.infrastructure.memory import (
        InMemoryAuditRepository,
        InMemoryProofRepository,
        InMemoryQuarantineRepository,
        InMemoryRecurringRepository,
        InMemoryTransactionRepository,
        InMemoryVendorBillRepository,
        InMemoryVendorRepository,
        InMemoryWalletRepository,
    )

    return RepositorySet(
        transactions=InMemoryTransactionRepository(),
        wallets=InMemoryWalletRepository(),
        audit=InMemoryAuditRepository(),
        quarantine=InMemoryQuarantineRepository(),
        proofs=InMemoryProofRepository(),
        vendors=InMemoryVendorRepository(),
        bills=InMemoryVendorBillRepository(),
        recurring=InMemoryRecurringRepository(),
    )


def sql_repositories(session: AsyncSession) -> RepositorySet:
    from paycore.infrastructure.database.repositories import (
        SqlAuditRepository,
        SqlProofRepository,
        SqlQuarantineRepository,
        SqlRecurringRepository,
        SqlTransactionRepository,
        SqlVendorBillRepository,
        SqlVendorRepository,
        SqlWalletRepository,
    )

    return RepositorySet(
        transactions=SqlTransactionRepository(session),
        wallets=SqlWalletRepository(session),
        audit=SqlAuditRepository(session),
        quarantine=SqlQuarantineRepository(session),
        proofs=SqlProofRepository(session),
        vendors=SqlVendorRepository(session),
        bills=SqlVendorBillRepository(session),
        recurring=SqlRecurringRepository(session),
    )


def _build_storage(settings: Settings) -> ObjectStorage:
    if settings.database.backend == "memory":
        return InMemoryObjectStorage(bucket=settings.storage.bucket, base_url=settings.storage_base_url)
    return LocalObjectStorage(settings.storage.root_dir, settings.storage.bucket, settings.storage_base_url)


@dataclass(slots=True)
class ApplicationContainer:
    """Long-lived collaborators plus a factory for per-request services.

    Locks, storage, the scanner, the gateway router and the retention tracker are
    shared by every unit of work; repositories are bound to one session each
    (or shared process-wide with the memory backend).
    """

    settings: Settings
    clock: Clock = utcnow
    router: Optional[GatewayRouter] = None
    scanner: Optional[MalwareScanner] = None
    storage: Optional[ObjectStorage] = None
    sleep: Any = asyncio.sleep
    rng: random.Random = field(default_factory=random.Random)
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    tokens: SessionTokenService = field(init=False)
    authorizer: Authorizer = field(init=False)
    signer: UrlSigner = field(init=False)
    verifier: SimulatedVerifier = field(init=False)
    retention_tracker: RetentionTracker = field(init=False)
    jobs: list[PeriodicJob] = field(default_factory=list)
    engine: Optional[AsyncEngine] = None
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _memory: Optional[RepositorySet] = None

    def __post_init__(self) -> None:
        settings = self.settings
        self.router = self.router or build_simulated_router(
            rng=self.rng,
            latency_scale=settings.gateways.latency_scale,
            failure_scale=settings.gateways.failure_rate_scale,
            card_decline_rate=settings.gateways.card_decline_rate,
            disabled=settings.gateways.disabled,
        )
        self.scanner = self.scanner or SignatureScanner(clock=self.clock)
        self.storage = self.storage or _build_storage(settings)
        self.tokens = SessionTokenService(
            settings.security.secret_key,
            settings.security.algorithm,
            settings.security.session_token_expire_minutes,
        )
        self.authorizer = Authorizer(
            self.tokens,
            allow_admin_token_bypass=settings.security.allow_admin_token_bypass,
        )
        self.signer = UrlSigner(
            settings.security.secret_key,
            base_url=f"{settings.api_prefix}/proofs/download",
            ttl_seconds=settings.security.signed_url_ttl_seconds,
            clock=self.clock,
        )
        self.verifier = SimulatedVerifier(approval_rate=settings.gateways.verification_approval_rate, rng=self.rng)
        self.retention_tracker = RetentionTracker(retention_days=settings.uploads.retention_days)

    @property
    def uses_memory(self) -> bool:
        return self.settings.database.backend == "memory"

    def init_infrastructure(self) -> None:
        """Ensure the repositories or the database engine are initialised."""
        if self.uses_memory:
            if self._memory is None:
                self._memory = memory_repositories()
            return
        if self.session_factory is None:
            from paycore.infrastructure.database.session import build_engine, build_session_factory

            self.engine = build_engine(
                self.settings.database_url,
                echo=self.settings.database.echo or self.settings.debug,
                pool_size=self.settings.database.pool_size,
                max_overflow=self.settings.database.max_overflow,
            )
            self.session_factory = build_session_factory(self.engine)

    async def create_schema(self) -> None:
        self.init_infrastructure()
        if self.engine is not None:
            from paycore.infrastructure.database.session import create_schema

            await create_schema(self.engine)

    async def dispose(self) -> None:
        await self.stop_jobs()
        if self.engine is not None:
            await self.engine.dispose()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[ServiceSet]:
        """Services sharing one session.

        Payment errors still commit: failed transactions, quarantine entries and
        audit records written before the error must survive it.
        """
        self.init_infrastructure()
        if self._memory is not None:
            yield self.build_services(self._memory)
            return

        assert self.session_factory is not None
        async with self.session_factory() as session:
            try:
                yield self.build_services(sql_repositories(session))
            except PaymentError:
                await session.commit()
                raise
            except BaseException:
                await session.rollback()
                raise
            else:
                await session.commit()

    def build_services(self, repositories: RepositorySet) -> ServiceSet:
        settings = self.settings
        clock = self.clock
        audit = AuditTrail(repositories.audit, clock=clock)
        ledger = TransactionLedger(repositories.transactions, verifier=self.verifier, clock=clock)
        wallet = WalletLedger(
            repositories.wallets,
            account_id=settings.wallet.account_id,
            opening_balance=settings.wallet.opening_balance,
            locks=self.locks,
            clock=clock,
        )
        vendors = VendorDirectory(repositories.vendors, clock=clock)
        quarantine = QuarantineRegistry(
            repositories.quarantine,
            self.storage,
            audit,
            self.authorizer,
            isolation_prefix=settings.storage.quarantine_prefix,
            subjects=QuarantinedProofs(repositories.proofs, self.storage, clock=clock),
            clock=clock,
        )
        uploads = settings.uploads
        return ServiceSet(
            ledger=ledger,
            checkout=CheckoutService(
                ledger,
                self.router,
                max_retries=settings.gateways.max_retries,
                backoff_base_seconds=settings.gateways.backoff_base_seconds,
                attempt_timeout=settings.gateways.attempt_timeout_seconds,
                sleep=self.sleep,
            ),
            wallet=wallet,
            vendors=vendors,
            bills=VendorBillBook(repositories.bills, vendors, wallet, locks=self.locks, clock=clock),
            recurring=RecurringPaymentScheduler(
                repositories.recurring,
                vendors,
                WalletRecurringPayer(wallet),
                default_max_retries=settings.scheduler.default_max_retries,
                default_retry_interval_hours=settings.scheduler.default_retry_interval_hours,
                locks=self.locks,
                max_concurrent_plans=None if self.uses_memory else 1,
                clock=clock,
            ),
            audit=audit,
            quarantine=quarantine,
            uploads=ProofUploadPipeline(
                repositories.proofs,
                self.storage,
                self.scanner,
                quarantine,
                audit,
                ledger,
                policy=UploadPolicy(
                    min_size_bytes=uploads.min_size_bytes,
                    max_size_bytes=uploads.max_size_bytes,
                    max_filename_length=uploads.max_filename_length,
                    min_width=uploads.min_width,
                    min_height=uploads.min_height,
                ),
                thumbnail_size=uploads.thumbnail_size,
                retention_days=uploads.retention_days,
                key_prefix=settings.storage.proof_prefix,
                clock=clock,
            ),
            reviews=ProofReviewService(repositories.proofs, ledger, audit, self.authorizer, clock=clock),
            access=SecureProofAccessGateway(
                repositories.proofs,
                self.storage,
                self.scanner,
                quarantine,
                audit,
                self.authorizer,
                self.signer,
                clock=clock,
            ),
            retention=ProofRetentionService(
                repositories.proofs,
                self.storage,
                quarantine,
                audit,
                tracker=self.retention_tracker,
                clock=clock,
            ),
        )

    async def process_recurring(self) -> Any:
        async with self.unit_of_work() as services:
            return await services.recurring.process_due()

    async def run_retention(self) -> Any:
        async with self.unit_of_work() as services:
            return await services.retention.run()

    def start_jobs(self) -> None:
        if not self.jobs:
            if self.settings.scheduler.enabled:
                self.jobs.append(
                    PeriodicJob(
                        "recurring-payments",
                        self.settings.scheduler.process_interval_seconds,
                        self.process_recurring,
                    )
                )
            if self.settings.retention.enabled:
                interval = timedelta(hours=self.settings.retention.cleanup_interval_hours).total_seconds()
                self.jobs.append(PeriodicJob("proof-retention", interval, self.run_retention))
        for job in self.jobs:
            job.start()

    async def stop_jobs(self) -> None:
        for job in self.jobs:
            await job.stop()


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = [
    "ApplicationContainer",
    "RepositorySet",
    "ServiceSet",
    "get_container",
    "memory_repositories",
    "sql_repositories",
]
