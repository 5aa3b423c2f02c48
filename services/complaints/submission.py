"""
Complaint submission workflow.

Validates the form locally, composes the stored description, inserts the row
and reads the server-generated tracking id back. Tracking ids come from a
database sequence, so a unique violation means two inserts raced for the same
id; those are retried with a linear backoff. Every other database error is
final.
"""

import asyncio
import hashlib
import hmac
import logging
import re
import uuid
from typing import Awaitable, Callable, Optional

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from common.complaint_types import ComplaintPriority, ComplaintStatus
from common.constants import (
    BUILDING_OFFICE_PATTERN,
    PG_FOREIGN_KEY_VIOLATION,
    PG_UNIQUE_VIOLATION,
    SUBMIT_BACKOFF_MS,
    SUBMIT_MAX_ATTEMPTS,
)
from common.errors import BackendError, DuplicateComplaint, InvalidReference, ValidationFailed
from libs.config import config
from libs.db import error_code
from libs.retry import RetryExhausted, RetryPolicy, linear_backoff
from models.complaint import Complaint
from models.user_models import Student
from services.complaints.schemas import ComplaintSubmitRequest

logger = logging.getLogger(__name__)

BUILDING_OFFICE_RE = re.compile(BUILDING_OFFICE_PATTERN)

DUPLICATE_MESSAGE = "A complaint with this tracking ID already exists. Please try again."
INVALID_DEPARTMENT_MESSAGE = "The selected department is invalid"
UNEXPECTED_MESSAGE = "An unexpected error occurred while submitting your complaint."


def backend_message(exc: BaseException) -> str:
    return str(getattr(exc, "orig", None) or exc)


def is_unique_violation(exc: BaseException) -> bool:
    if error_code(exc) == PG_UNIQUE_VIOLATION:
        return True
    message = backend_message(exc).lower()
    return "duplicate" in message or "unique" in message


def is_department_violation(exc: BaseException) -> bool:
    message = backend_message(exc).lower()
    is_fk = error_code(exc) == PG_FOREIGN_KEY_VIOLATION or "foreign key" in message
    return is_fk and "department" in message


def validate_submission(request: ComplaintSubmitRequest) -> None:
    if not request.title.strip() or not request.description.strip():
        raise ValidationFailed("Please fill in all required fields")
    if request.building_office and not BUILDING_OFFICE_RE.fullmatch(request.building_office):
        raise ValidationFailed(
            "Building/Office may only contain letters, numbers, hyphens and spaces"
        )


def pseudonymize(user_id: str, salt: Optional[str] = None) -> str:
    """Salted HMAC-SHA256 of the user id; stable per user, not reversible."""
    key = (salt if salt is not None else config.ANONYMITY_SALT).encode()
    return hmac.new(key, str(user_id).encode(), hashlib.sha256).hexdigest()


def compose_description(description: str, building_office: Optional[str]) -> str:
    if not building_office:
        return description
    return f"{description}\n\nBuilding/Office: {building_office}"


class ComplaintSubmitter:
    """
    Inserts complaints with the duplicate-id retry policy.

    Args:
        db: async session the insert runs on
        sleep: awaited between attempts (tests pass a recorder)
        on_retry: awaited with (attempt, error) before each backoff
    """

    def __init__(
        self,
        db: AsyncSession,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_retry: Optional[Callable[[int, BaseException], Awaitable[None]]] = None,
        max_attempts: int = SUBMIT_MAX_ATTEMPTS,
        backoff_ms: int = SUBMIT_BACKOFF_MS,
    ):
        self.db = db
        self.policy = RetryPolicy(
            max_attempts=max_attempts,
            delay=linear_backoff(backoff_ms / 1000.0),
            retry_on=is_unique_violation,
            sleep=sleep,
            on_retry=on_retry,
        )

    async def _insert(self, values: dict, attempt: int) -> str:
        stmt = insert(Complaint).values(**values).returning(Complaint.tracking_id)
        try:
            result = await self.db.execute(stmt)
            tracking_id = result.scalar_one()
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        logger.info("Complaint %s stored on attempt %d", tracking_id, attempt)
        return tracking_id

    async def resolve_anonymity(
        self, request: ComplaintSubmitRequest, submitter_user_id: str
    ) -> bool:
        """An explicit choice wins; otherwise the student's saved default."""
        if request.anonymous is not None:
            return request.anonymous
        result = await self.db.execute(
            select(Student.is_anonymous_default).where(
                Student.user_id == uuid.UUID(str(submitter_user_id))
            )
        )
        return bool(result.scalar_one_or_none())

    async def submit(self, request: ComplaintSubmitRequest, submitter_user_id: str) -> str:
        """
        Store a complaint and return its tracking id.

        Raises:
            ValidationFailed: bad form input, nothing was sent to the database
            DuplicateComplaint: every attempt hit a tracking id conflict
            InvalidReference: the department does not exist
            BackendError: any other database failure, message verbatim
        """
        validate_submission(request)
        anonymous = await self.resolve_anonymity(request, submitter_user_id)

        values = {
            "category": request.category,
            "title": request.title,
            "description": compose_description(request.description, request.building_office),
            "status": ComplaintStatus.SUBMITTED,
            "priority": ComplaintPriority.LOW,
            "submitter_user_id": uuid.UUID(str(submitter_user_id)),
            "department_assigned": request.department,
        }
        # The user id stays for the submitter's own dashboard and row policies
        if anonymous:
            values["submitter_pseudonym_hash"] = pseudonymize(submitter_user_id)

        try:
            return await self.policy.run(lambda attempt: self._insert(values, attempt))
        except RetryExhausted as e:
            message = backend_message(e.last_error).lower()
            logger.error("Complaint submission gave up after %d attempts", e.attempts)
            if "duplicate" in message or "unique" in message:
                raise DuplicateComplaint(DUPLICATE_MESSAGE) from e
            raise BackendError(UNEXPECTED_MESSAGE) from e
        except IntegrityError as e:
            if is_department_violation(e):
                raise InvalidReference(INVALID_DEPARTMENT_MESSAGE) from e
            logger.exception("Complaint insert rejected")
            raise BackendError(backend_message(e)) from e
        except SQLAlchemyError as e:
            logger.exception("Complaint insert failed")
            raise BackendError(backend_message(e)) from e
