"""
Transaction Ledger

Owns create/read/update/delete of a user's transactions.

Every path is scoped to the caller:
- Reads of someone else's transaction look exactly like a missing one
  (NotFoundError), so existence never leaks through a read.
- Updates and deletes check existence first, then ownership, and fail
  with UnauthorizedError when the record belongs to another user.
- The final write is owner-scoped in the store as well, so a record that
  changes hands or disappears after the check is never touched.
"""

from typing import Any, Optional

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import NotFoundError, UnauthorizedError, ValidationError
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import Pagination, Transaction, TransactionPage, utc_now
from finance_tracker.services.boundary import call_storage
from finance_tracker.services.storage import TransactionStorageInterface
from finance_tracker.validation import FinanceValidator, TransactionCreate, TransactionUpdate


class TransactionLedger:
    """
    The durable collection of each user's transactions.

    Holds no per-request state; one instance serves every request.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def _validated_create(self, fields: Any, user_id: int) -> TransactionCreate:
        try:
            return self._validator.validate_transaction_create(fields)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                "transaction_create", e.issues, user_id=user_id
            )
            raise

    async def _validated_update(self, fields: Any, user_id: int) -> TransactionUpdate:
        try:
            return self._validator.validate_transaction_update(fields)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                "transaction_update", e.issues, user_id=user_id
            )
            raise

    async def _owned(self, transaction_id: int, user_id: int, action: str) -> Transaction:
        """Fetch a transaction the caller is about to mutate."""
        transaction = await call_storage(
            self._storage.get_transaction_by_id(transaction_id),
            "get_transaction",
            self._audit_logger,
            user_id=user_id,
        )
        if transaction is None:
            raise NotFoundError("Transaction not found")

        if transaction.user_id != user_id:
            await self._audit_logger.log_access_denied(
                user_id=user_id,
                entity_type="transaction",
                entity_id=transaction_id,
                action=action,
            )
            raise UnauthorizedError(f"Not allowed to {action} this transaction")

        return transaction

    async def create(self, user_id: int, fields: Any) -> Transaction:
        """
        Record a new transaction for `user_id`.

        `fields` may be raw input or an already validated TransactionCreate.
        A missing date means "now".
        """
        validated = await self._validated_create(fields, user_id)

        now = utc_now()
        transaction = Transaction(
            user_id=user_id,
            type=validated.type,
            category=validated.category.lower(),
            amount=validated.amount,
            description=validated.description,
            date=validated.date or now,
            created_at=now,
            updated_at=now,
        )

        saved = await call_storage(
            self._storage.save_transaction(transaction),
            "save_transaction",
            self._audit_logger,
            user_id=user_id,
        )

        await self._audit_logger.log(AuditEventBuilder.transaction_created(
            user_id=user_id,
            transaction_id=saved.id,
            transaction_type=saved.type.value,
            amount=str(saved.amount),
        ))
        return saved

    async def list(
        self,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> TransactionPage:
        """One page of the caller's transactions, most recent first."""
        request = self._validator.validate_page(page, page_size)

        total = await call_storage(
            self._storage.count_transactions(user_id),
            "count_transactions",
            self._audit_logger,
            user_id=user_id,
        )
        items = await call_storage(
            self._storage.list_transactions(
                user_id,
                limit=request.page_size,
                offset=request.offset,
            ),
            "list_transactions",
            self._audit_logger,
            user_id=user_id,
        )

        total_pages = -(-total // request.page_size)
        return TransactionPage(
            data=items,
            pagination=Pagination(
                current_page=request.page,
                total_pages=total_pages,
                total_items=total,
                items_per_page=request.page_size,
            ),
        )

    async def get_by_id(
        self,
        transaction_id: int,
        user_id: Optional[int] = None,
    ) -> Transaction:
        """
        Fetch one transaction.

        With `user_id`, a transaction owned by someone else is reported as
        not found.
        """
        transaction = await call_storage(
            self._storage.get_transaction_by_id(transaction_id),
            "get_transaction",
            self._audit_logger,
            user_id=user_id,
        )
        if transaction is None:
            raise NotFoundError("Transaction not found")

        if user_id is not None and transaction.user_id != user_id:
            await self._audit_logger.log_access_denied(
                user_id=user_id,
                entity_type="transaction",
                entity_id=transaction_id,
                action="read",
            )
            raise NotFoundError("Transaction not found")

        return transaction

    async def update(self, transaction_id: int, user_id: int, fields: Any) -> Transaction:
        """Apply only the supplied fields; everything else is left as is."""
        changes = (await self._validated_update(fields, user_id)).changes()
        existing = await self._owned(transaction_id, user_id, "update")

        if not changes:
            return existing

        if "category" in changes:
            changes["category"] = changes["category"].lower()
        changes["updated_at"] = utc_now()

        stored = await call_storage(
            self._storage.update_transaction(existing.model_copy(update=changes)),
            "update_transaction",
            self._audit_logger,
            user_id=user_id,
        )
        if stored is None:
            # Deleted or reassigned between the check and the write
            raise NotFoundError("Transaction not found")

        await self._audit_logger.log(AuditEventBuilder.transaction_updated(
            user_id=user_id,
            transaction_id=transaction_id,
            fields=sorted(k for k in changes if k != "updated_at"),
        ))
        return stored

    async def delete(self, transaction_id: int, user_id: int) -> Transaction:
        """Delete one of the caller's transactions and return it."""
        await self._owned(transaction_id, user_id, "delete")

        deleted = await call_storage(
            self._storage.delete_transaction(transaction_id, user_id),
            "delete_transaction",
            self._audit_logger,
            user_id=user_id,
        )
        if deleted is None:
            raise NotFoundError("Transaction not found")

        await self._audit_logger.log(AuditEventBuilder.transaction_deleted(
            user_id=user_id,
            transaction_id=transaction_id,
        ))
        return deleted
