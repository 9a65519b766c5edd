"""
SQLAlchemy Storage Implementation

Any SQLAlchemy URL works; the default is a local SQLite file.

TRADEOFFS:
- Calls are synchronous inside async methods. Requests are short and the
  store is local, so the event loop is blocked only briefly.
- Timestamps are stored as naive UTC because SQLite drops offsets. They
  are converted back to aware UTC on every read.

Uniqueness of (user, category, month) budgets and of user emails is
enforced by constraints here. Owner-scoped updates and deletes filter on
both the row id and the user id, so a mismatched owner changes nothing.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_tracker.config import get_settings
from finance_tracker.errors import DuplicateError, StorageError
from finance_tracker.models.finance import Budget, Transaction, TransactionType, User
from finance_tracker.models.period import as_utc
from finance_tracker.services.storage.interface import (
    BudgetStorageInterface,
    TransactionStorageInterface,
    UserStorageInterface,
)

Base = declarative_base()

CENT = Decimal("0.01")


class UserRecord(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    currency_preference = Column(String(3), nullable=False, default="USD")
    monthly_income = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False)


class TransactionRecord(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type = Column(String(10), nullable=False)  # 'income' or 'expense'
    category = Column(String(50), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(200), nullable=True)
    date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
    )


class BudgetRecord(Base):
    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = Column(String(50), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    month = Column(DateTime, nullable=False)  # first instant of the month, UTC
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "category", "month",
            name="uq_budgets_user_category_month",
        ),
    )


# =============================================================================
# CONVERSIONS
# =============================================================================

def _to_db_time(moment: datetime) -> datetime:
    return as_utc(moment).replace(tzinfo=None)


def _from_db_time(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc)


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


def _user_from_record(record: UserRecord) -> User:
    return User(
        id=record.id,
        name=record.name,
        email=record.email,
        password_hash=record.password_hash,
        currency_preference=record.currency_preference,
        monthly_income=_money(record.monthly_income),
        created_at=_from_db_time(record.created_at),
    )


def _transaction_from_record(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        user_id=record.user_id,
        type=TransactionType(record.type),
        category=record.category,
        amount=_money(record.amount),
        description=record.description,
        date=_from_db_time(record.date),
        created_at=_from_db_time(record.created_at),
        updated_at=_from_db_time(record.updated_at),
    )


def _budget_from_record(record: BudgetRecord) -> Budget:
    return Budget(
        id=record.id,
        user_id=record.user_id,
        category=record.category,
        amount=_money(record.amount),
        month=_from_db_time(record.month),
        created_at=_from_db_time(record.created_at),
    )


# =============================================================================
# CLIENT
# =============================================================================

class DatabaseClient:
    """
    Owns the engine and session factory.

    Handles connection setup with retry and hands out one session per
    unit of work.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        settings = get_settings().database
        self._url = url or settings.url
        self._echo = settings.echo if echo is None else echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def url(self) -> str:
        return self._url

    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Engine:
        """
        Create the engine and make sure every table exists.
        """
        if self._engine is None:
            kwargs = {"echo": self._echo}
            if self._url.startswith("sqlite"):
                kwargs["connect_args"] = {"check_same_thread": False}
                if self._url in ("sqlite://", "sqlite:///:memory:"):
                    # One shared connection, or each session sees an empty database
                    kwargs["poolclass"] = StaticPool

            engine = create_engine(self._url, **kwargs)
            Base.metadata.create_all(engine)
            self._engine = engine
            self._session_factory = sessionmaker(
                bind=engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            try:
                self.connect()
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to connect to database: {e}") from e
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None


# =============================================================================
# STORES
# =============================================================================

class DatabaseUserStorage(UserStorageInterface):
    """SQLAlchemy implementation of user storage."""

    def __init__(self, client: Optional[DatabaseClient] = None):
        self._client = client or DatabaseClient()

    async def save_user(self, user: User) -> User:
        try:
            with self._client.session() as session:
                record = UserRecord(
                    name=user.name,
                    email=user.email.lower(),
                    password_hash=user.password_hash,
                    currency_preference=user.currency_preference,
                    monthly_income=user.monthly_income,
                    created_at=_to_db_time(user.created_at),
                )
                session.add(record)
                session.flush()
                return _user_from_record(record)
        except IntegrityError as e:
            raise DuplicateError(f"Email already registered: {user.email}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save user: {e}") from e

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        try:
            with self._client.session() as session:
                record = session.get(UserRecord, user_id)
                return _user_from_record(record) if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user: {e}") from e

    async def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            with self._client.session() as session:
                record = session.scalars(
                    select(UserRecord).where(
                        func.lower(UserRecord.email) == email.strip().lower()
                    )
                ).first()
                return _user_from_record(record) if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user: {e}") from e

    async def update_user(self, user: User) -> Optional[User]:
        try:
            with self._client.session() as session:
                record = session.get(UserRecord, user.id)
                if record is None:
                    return None
                record.name = user.name
                record.email = user.email.lower()
                record.currency_preference = user.currency_preference
                record.monthly_income = user.monthly_income
                session.flush()
                return _user_from_record(record)
        except IntegrityError as e:
            raise DuplicateError(f"Email already registered: {user.email}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update user: {e}") from e

    async def delete_user(self, user_id: int) -> Optional[User]:
        try:
            with self._client.session() as session:
                record = session.get(UserRecord, user_id)
                if record is None:
                    return None
                deleted = _user_from_record(record)

                # Owned records go first, in the same transaction
                session.execute(
                    delete(TransactionRecord).where(TransactionRecord.user_id == user_id)
                )
                session.execute(
                    delete(BudgetRecord).where(BudgetRecord.user_id == user_id)
                )
                session.delete(record)
                return deleted
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete user: {e}") from e


class DatabaseTransactionStorage(TransactionStorageInterface):
    """SQLAlchemy implementation of transaction storage."""

    def __init__(self, client: Optional[DatabaseClient] = None):
        self._client = client or DatabaseClient()

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        try:
            with self._client.session() as session:
                record = TransactionRecord(
                    user_id=transaction.user_id,
                    type=transaction.type.value,
                    category=transaction.category,
                    amount=transaction.amount,
                    description=transaction.description,
                    date=_to_db_time(transaction.date),
                    created_at=_to_db_time(transaction.created_at),
                    updated_at=_to_db_time(transaction.updated_at),
                )
                session.add(record)
                session.flush()
                return _transaction_from_record(record)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save transaction: {e}") from e

    async def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        try:
            with self._client.session() as session:
                record = session.get(TransactionRecord, transaction_id)
                return _transaction_from_record(record) if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get transaction: {e}") from e

    async def update_transaction(self, transaction: Transaction) -> Optional[Transaction]:
        try:
            with self._client.session() as session:
                result = session.execute(
                    update(TransactionRecord)
                    .where(
                        TransactionRecord.id == transaction.id,
                        TransactionRecord.user_id == transaction.user_id,
                    )
                    .values(
                        type=transaction.type.value,
                        category=transaction.category,
                        amount=transaction.amount,
                        description=transaction.description,
                        date=_to_db_time(transaction.date),
                        updated_at=_to_db_time(transaction.updated_at),
                    )
                )
                if result.rowcount == 0:
                    return None
                record = session.get(TransactionRecord, transaction.id, populate_existing=True)
                return _transaction_from_record(record)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update transaction: {e}") from e

    async def delete_transaction(
        self,
        transaction_id: int,
        user_id: int,
    ) -> Optional[Transaction]:
        try:
            with self._client.session() as session:
                record = session.scalars(
                    select(TransactionRecord).where(
                        TransactionRecord.id == transaction_id,
                        TransactionRecord.user_id == user_id,
                    )
                ).first()
                if record is None:
                    return None
                deleted = _transaction_from_record(record)

                result = session.execute(
                    delete(TransactionRecord).where(
                        TransactionRecord.id == transaction_id,
                        TransactionRecord.user_id == user_id,
                    )
                )
                if result.rowcount == 0:
                    return None
                return deleted
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e

    async def list_transactions(
        self,
        user_id: int,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Transaction]:
        try:
            with self._client.session() as session:
                records = session.scalars(
                    select(TransactionRecord)
                    .where(TransactionRecord.user_id == user_id)
                    .order_by(TransactionRecord.date.desc(), TransactionRecord.id.desc())
                    .limit(limit)
                    .offset(offset)
                ).all()
                return [_transaction_from_record(r) for r in records]
        except (SQLAlchemyError, OverflowError) as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

    async def count_transactions(self, user_id: int) -> int:
        try:
            with self._client.session() as session:
                count = session.scalar(
                    select(func.count(TransactionRecord.id))
                    .where(TransactionRecord.user_id == user_id)
                )
                return int(count or 0)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count transactions: {e}") from e

    async def sum_by_category(
        self,
        user_id: int,
        date_from: datetime,
        date_to: datetime,
        transaction_type: Optional[TransactionType] = None,
    ) -> dict[str, Decimal]:
        query = (
            select(TransactionRecord.category, func.sum(TransactionRecord.amount))
            .where(
                TransactionRecord.user_id == user_id,
                TransactionRecord.date >= _to_db_time(date_from),
                TransactionRecord.date < _to_db_time(date_to),
            )
            .group_by(TransactionRecord.category)
        )
        if transaction_type is not None:
            query = query.where(TransactionRecord.type == transaction_type.value)

        try:
            with self._client.session() as session:
                rows = session.execute(query).all()
                return {category: _money(total) for category, total in rows}
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to sum by category: {e}") from e

    async def sum_by_type(
        self,
        user_id: int,
        date_from: datetime,
        date_to: datetime,
    ) -> dict[TransactionType, Decimal]:
        query = (
            select(TransactionRecord.type, func.sum(TransactionRecord.amount))
            .where(
                TransactionRecord.user_id == user_id,
                TransactionRecord.date >= _to_db_time(date_from),
                TransactionRecord.date < _to_db_time(date_to),
            )
            .group_by(TransactionRecord.type)
        )
        try:
            with self._client.session() as session:
                rows = session.execute(query).all()
                return {TransactionType(kind): _money(total) for kind, total in rows}
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to sum by type: {e}") from e


class DatabaseBudgetStorage(BudgetStorageInterface):
    """SQLAlchemy implementation of budget storage."""

    def __init__(self, client: Optional[DatabaseClient] = None):
        self._client = client or DatabaseClient()

    async def save_budget(self, budget: Budget) -> Budget:
        try:
            with self._client.session() as session:
                record = BudgetRecord(
                    user_id=budget.user_id,
                    category=budget.category,
                    amount=budget.amount,
                    month=_to_db_time(budget.month),
                    created_at=_to_db_time(budget.created_at),
                )
                session.add(record)
                session.flush()
                return _budget_from_record(record)
        except IntegrityError as e:
            raise DuplicateError(
                f"Budget already exists for {budget.category} in {budget.month:%Y-%m}"
            ) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save budget: {e}") from e

    async def find_budget(
        self,
        user_id: int,
        category: str,
        month: datetime,
    ) -> Optional[Budget]:
        try:
            with self._client.session() as session:
                record = session.scalars(
                    select(BudgetRecord).where(
                        BudgetRecord.user_id == user_id,
                        BudgetRecord.category == category,
                        BudgetRecord.month == _to_db_time(month),
                    )
                ).first()
                return _budget_from_record(record) if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to find budget: {e}") from e

    async def list_budgets(
        self,
        user_id: int,
        date_from: datetime,
        date_to: datetime,
    ) -> list[Budget]:
        try:
            with self._client.session() as session:
                records = session.scalars(
                    select(BudgetRecord)
                    .where(
                        BudgetRecord.user_id == user_id,
                        BudgetRecord.month >= _to_db_time(date_from),
                        BudgetRecord.month < _to_db_time(date_to),
                    )
                    .order_by(BudgetRecord.category, BudgetRecord.id)
                ).all()
                return [_budget_from_record(r) for r in records]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list budgets: {e}") from e
