"""DB models and helpers for the FinControl ledger.

Every read that serves a caller is scoped by ``user_id``; the only unscoped
lookups are the ones the extraction pipeline uses to tell "missing" apart from
"owned by someone else".
"""

import uuid
from collections.abc import Iterator, Sequence
from datetime import date
from functools import lru_cache

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    extract,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from fincontrol.core.models import (
    DEFAULT_PROFILE_COLOR,
    FileStatus,
    PaymentMethod,
    ProfileCreate,
    ProfileUpdate,
    TransactionData,
    TransactionType,
)
from fincontrol.core.utils import get_logger, utcnow

Base = declarative_base()
logger = get_logger("fincontrol.db")


def _new_id() -> str:
    return str(uuid.uuid4())


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class Profile(Base):
    """A named financial scope (client, person) owning a set of transactions."""

    __tablename__ = "profiles"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(16), nullable=False, default=DEFAULT_PROFILE_COLOR)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    transactions = relationship("Transaction", back_populates="profile", cascade="all, delete-orphan")
    files = relationship("UploadedFile", back_populates="profile", cascade="all, delete-orphan")


class Transaction(Base):
    """One income or expense ledger entry; the amount is always positive."""

    __tablename__ = "transactions"
    id = Column(String(36), primary_key=True, default=_new_id)
    profile_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(Enum(TransactionType, values_callable=_values, name="transaction_type"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_source = Column(Text, nullable=True)
    payment_method = Column(
        Enum(PaymentMethod, values_callable=_values, name="payment_method"),
        nullable=False,
        default=PaymentMethod.PIX,
    )
    transaction_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    profile = relationship("Profile", back_populates="transactions")


class UploadedFile(Base):
    """A document staged for AI extraction and the durable record of its outcome."""

    __tablename__ = "uploaded_files"
    id = Column(String(36), primary_key=True, default=_new_id)
    profile_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    file_name = Column(Text, nullable=False)
    file_type = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    storage_path = Column(Text, nullable=False)
    status = Column(
        Enum(FileStatus, values_callable=_values, name="file_status"),
        nullable=False,
        default=FileStatus.PENDING,
        index=True,
    )
    processed_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    profile = relationship("Profile", back_populates="files")


@lru_cache
def get_engine() -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    from fincontrol.core.settings import get_settings

    url = get_settings().database_url
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


@lru_cache
def get_session_factory() -> sessionmaker:
    """Session factory bound to the configured engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db(engine: Engine | None = None) -> None:
    """Create the ledger tables if they do not exist yet."""
    Base.metadata.create_all(engine or get_engine())


def get_db() -> Iterator["LedgerRepository"]:
    """Yield a LedgerRepository bound to a fresh session, closing it afterwards."""
    repository = LedgerRepository(get_session_factory()())
    try:
        yield repository
    finally:
        repository.close()


class LedgerRepository:
    """Helper class for ledger persistence using SQLAlchemy."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    # --- Profiles ---
    def get_profile(self, profile_id: str) -> Profile | None:
        """Fetch a profile regardless of owner."""
        return self.session.get(Profile, profile_id)

    def get_owned_profile(self, profile_id: str, user_id: str) -> Profile | None:
        """Fetch a profile only if it belongs to ``user_id``."""
        stmt = select(Profile).where(Profile.id == profile_id, Profile.user_id == user_id)
        return self.session.scalars(stmt).first()

    def list_profiles(self, user_id: str) -> list[Profile]:
        stmt = select(Profile).where(Profile.user_id == user_id).order_by(Profile.name)
        return list(self.session.scalars(stmt))

    def create_profile(self, user_id: str, data: ProfileCreate) -> Profile:
        profile = Profile(user_id=user_id, **data.model_dump())
        self.session.add(profile)
        self.session.commit()
        return profile

    def update_profile(self, profile: Profile, data: ProfileUpdate) -> Profile:
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, key, value)
        self.session.commit()
        return profile

    def delete_profile(self, profile: Profile) -> None:
        """Delete a profile together with its transactions and uploaded files."""
        self.session.delete(profile)
        self.session.commit()

    # --- Transactions ---
    def insert_transactions(self, rows: Sequence[TransactionData], profile_id: str, user_id: str) -> int:
        """Insert rows in a single commit; nothing is kept if the commit fails."""
        records = [
            Transaction(
                profile_id=profile_id,
                user_id=user_id,
                type=row.type,
                description=row.description,
                amount=row.amount,
                payment_method=row.payment_method,
                payment_source=row.payment_source,
                transaction_date=date.fromisoformat(row.transaction_date),
                notes=row.notes,
            )
            for row in rows
        ]
        try:
            self.session.add_all(records)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return len(records)

    def list_transactions(
        self,
        user_id: str,
        profile_id: str | None = None,
        year: int | None = None,
        month: int | None = None,
        types: Sequence[TransactionType] | None = None,
    ) -> list[Transaction]:
        """List the caller's transactions, newest first."""
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if profile_id:
            stmt = stmt.where(Transaction.profile_id == profile_id)
        if year:
            stmt = stmt.where(extract("year", Transaction.transaction_date) == year)
        if month:
            stmt = stmt.where(extract("month", Transaction.transaction_date) == month)
        if types:
            stmt = stmt.where(Transaction.type.in_(list(types)))
        stmt = stmt.order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
        return list(self.session.scalars(stmt))

    def get_owned_transaction(self, transaction_id: str, user_id: str) -> Transaction | None:
        stmt = select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        return self.session.scalars(stmt).first()

    def delete_transaction(self, transaction: Transaction) -> None:
        self.session.delete(transaction)
        self.session.commit()

    # --- Uploaded files ---
    def create_uploaded_file(
        self,
        profile_id: str,
        user_id: str,
        file_name: str,
        file_type: str,
        file_size: int,
        storage_path: str,
    ) -> UploadedFile:
        record = UploadedFile(
            profile_id=profile_id,
            user_id=user_id,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
            storage_path=storage_path,
            status=FileStatus.PENDING,
        )
        self.session.add(record)
        self.session.commit()
        return record

    def get_file(self, file_id: str) -> UploadedFile | None:
        """Fetch a file record regardless of owner."""
        return self.session.get(UploadedFile, file_id)

    def get_owned_file(self, file_id: str, user_id: str) -> UploadedFile | None:
        stmt = select(UploadedFile).where(UploadedFile.id == file_id, UploadedFile.user_id == user_id)
        return self.session.scalars(stmt).first()

    def list_pending_files(self, user_id: str, profile_id: str) -> list[UploadedFile]:
        stmt = (
            select(UploadedFile)
            .where(
                UploadedFile.user_id == user_id,
                UploadedFile.profile_id == profile_id,
                UploadedFile.status == FileStatus.PENDING,
            )
            .order_by(UploadedFile.created_at)
        )
        return list(self.session.scalars(stmt))

    def transition_file(
        self,
        file_id: str,
        expected: FileStatus | Sequence[FileStatus],
        target: FileStatus,
        **values: object,
    ) -> bool:
        """Move a file to ``target`` only if it is currently in ``expected``.

        A single conditional UPDATE; returns False when another writer got
        there first or the file is not in an expected state.
        """
        allowed = [expected] if isinstance(expected, FileStatus) else list(expected)
        stmt = (
            update(UploadedFile)
            .where(UploadedFile.id == file_id, UploadedFile.status.in_(allowed))
            .values(status=target, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        moved = result.rowcount == 1
        if moved:
            logger.info(f"File {file_id}: {'/'.join(allowed)} -> {target}")
        else:
            logger.warning(f"File {file_id}: transition to {target} refused (expected {'/'.join(allowed)})")
        return moved

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()
