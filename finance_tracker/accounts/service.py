"""
Account Service

Registration, login, profile updates and account deletion.

Emails are unique and stored lowercase. Login failures never say whether
the email or the password was wrong.
"""

from typing import Any, Optional

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import (
    ConflictError,
    DuplicateError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import User, utc_now
from finance_tracker.services.auth import PasswordHasher, TokenAuthProvider
from finance_tracker.services.boundary import call_storage
from finance_tracker.services.storage import UserStorageInterface
from finance_tracker.validation import FinanceValidator

EMAIL_TAKEN = "User already exists with this email"
BAD_CREDENTIALS = "Invalid email or password"


class AccountService:

    def __init__(
        self,
        user_storage: UserStorageInterface,
        hasher: Optional[PasswordHasher] = None,
        token_provider: Optional[TokenAuthProvider] = None,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = user_storage
        self._hasher = hasher or PasswordHasher()
        self._tokens = token_provider or TokenAuthProvider()
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def _email_owner(self, email: str, user_id: Optional[int] = None) -> Optional[User]:
        return await call_storage(
            self._storage.get_user_by_email(email),
            "get_user_by_email",
            self._audit_logger,
            user_id=user_id,
        )

    async def register(self, fields: Any) -> User:
        """
        Create an account.

        Raises:
            ValidationError: Bad name, email or weak password
            ConflictError: The email is already registered
        """
        try:
            validated = self._validator.validate_registration(fields)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed("register", e.issues)
            raise

        if await self._email_owner(validated.email) is not None:
            raise ConflictError(EMAIL_TAKEN)

        user = User(
            name=validated.name,
            email=validated.email,
            password_hash=self._hasher.hash(validated.password),
            created_at=utc_now(),
        )
        try:
            saved = await call_storage(
                self._storage.save_user(user),
                "save_user",
                self._audit_logger,
            )
        except DuplicateError:
            raise ConflictError(EMAIL_TAKEN)

        await self._audit_logger.log(
            AuditEventBuilder.user_registered(user_id=saved.id, email=saved.email)
        )
        return saved

    async def login(self, fields: Any) -> tuple[str, User]:
        """
        Check credentials and issue a bearer token.

        Returns:
            (token, user)
        """
        try:
            validated = self._validator.validate_login(fields)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed("login", e.issues)
            raise

        user = await self._email_owner(validated.email)
        if user is None or not self._hasher.verify(validated.password, user.password_hash):
            await self._audit_logger.log(AuditEventBuilder.login(
                email=validated.email,
                user_id=None,
                succeeded=False,
            ))
            raise UnauthenticatedError(BAD_CREDENTIALS)

        token = self._tokens.issue_token(user.id)
        await self._audit_logger.log(AuditEventBuilder.login(
            email=user.email,
            user_id=user.id,
            succeeded=True,
        ))
        return token, user

    async def get_profile(self, user_id: int) -> User:
        """Load a user or raise NotFoundError. Internal; no route serves it."""
        user = await call_storage(
            self._storage.get_user_by_id(user_id),
            "get_user",
            self._audit_logger,
            user_id=user_id,
        )
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: int, fields: Any) -> User:
        """Apply only the supplied profile fields."""
        try:
            changes = self._validator.validate_profile_update(fields).changes()
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                "profile_update", e.issues, user_id=user_id
            )
            raise

        user = await self.get_profile(user_id)
        if not changes:
            return user

        new_email = changes.get("email")
        if new_email is not None and new_email != user.email:
            owner = await self._email_owner(new_email, user_id=user_id)
            if owner is not None and owner.id != user_id:
                raise ConflictError("Email already in use")

        try:
            updated = await call_storage(
                self._storage.update_user(user.model_copy(update=changes)),
                "update_user",
                self._audit_logger,
                user_id=user_id,
            )
        except DuplicateError:
            raise ConflictError("Email already in use")
        if updated is None:
            raise NotFoundError("User not found")

        await self._audit_logger.log(AuditEventBuilder.profile_updated(
            user_id=user_id,
            fields=sorted(changes),
        ))
        return updated

    async def delete_account(self, user_id: int) -> User:
        """Delete the user together with every transaction and budget they own."""
        deleted = await call_storage(
            self._storage.delete_user(user_id),
            "delete_user",
            self._audit_logger,
            user_id=user_id,
        )
        if deleted is None:
            raise NotFoundError("User not found")

        await self._audit_logger.log(AuditEventBuilder.account_deleted(user_id=user_id))
        return deleted
