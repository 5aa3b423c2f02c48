# pytest services/complaints/tests/test_submission.py -q

import uuid

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from common.complaint_types import ComplaintCategory, ComplaintPriority, ComplaintStatus
from common.errors import BackendError, DuplicateComplaint, InvalidReference, ValidationFailed
from services.complaints.schemas import ComplaintSubmitRequest
from services.complaints.submission import (
    ComplaintSubmitter,
    compose_description,
    is_department_violation,
    is_unique_violation,
    pseudonymize,
    validate_submission,
)

pytestmark = pytest.mark.unit

USER_ID = str(uuid.uuid4())


class PgError(Exception):
    """Mimics an asyncpg error carrying a SQLSTATE."""

    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


def duplicate(message='duplicate key value violates unique constraint "complaints_tracking_id_key"'):
    return IntegrityError("INSERT INTO complaints", {}, PgError(message, "23505"))


def department_fk():
    return IntegrityError(
        "INSERT INTO complaints",
        {},
        PgError(
            'insert or update on table "complaints" violates foreign key constraint '
            '"complaints_department_assigned_fkey"',
            "23503",
        ),
    )


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def request(**overrides):
    data = {
        "category": "Hostel",
        "title": "Broken heater",
        "description": "Room 12 heater does not work",
        "anonymous": False,
    }
    data.update(overrides)
    return ComplaintSubmitRequest(**data)


def inserted_params(db, call_index=-1):
    stmt = db.execute.await_args_list[call_index].args[0]
    return stmt.compile(dialect=postgresql.dialect()).params


@pytest.mark.asyncio
async def test_first_attempt_success(make_db, make_result):
    db = make_db([make_result("EN-2025-00001")])
    sleep = SleepRecorder()

    tracking_id = await ComplaintSubmitter(db, sleep=sleep).submit(request(), USER_ID)

    assert tracking_id == "EN-2025-00001"
    assert sleep.delays == []
    assert db.commits == 1
    params = inserted_params(db)
    assert params["description"] == "Room 12 heater does not work"
    assert params["status"] == ComplaintStatus.SUBMITTED
    assert params["priority"] == ComplaintPriority.LOW
    assert params["category"] == ComplaintCategory.HOSTEL
    assert params["submitter_user_id"] == uuid.UUID(USER_ID)
    assert params["department_assigned"] is None
    assert "submitter_pseudonym_hash" not in params


@pytest.mark.asyncio
async def test_building_office_is_appended(make_db, make_result):
    db = make_db([make_result("EN-2025-00002")])

    await ComplaintSubmitter(db, sleep=SleepRecorder()).submit(
        request(building_office="Block B-12"), USER_ID
    )

    assert inserted_params(db)["description"] == (
        "Room 12 heater does not work\n\nBuilding/Office: Block B-12"
    )


@pytest.mark.asyncio
async def test_duplicate_ids_retry_with_linear_backoff(make_db, make_result):
    db = make_db([duplicate(), duplicate(), make_result("EN-2025-00007")])
    sleep = SleepRecorder()
    retries = []

    async def on_retry(attempt, exc):
        retries.append(attempt)

    tracking_id = await ComplaintSubmitter(db, sleep=sleep, on_retry=on_retry).submit(
        request(), USER_ID
    )

    assert tracking_id == "EN-2025-00007"
    assert sleep.delays == [0.5, 1.0]
    assert retries == [1, 2]
    assert db.execute.await_count == 3
    assert db.rollbacks == 2


@pytest.mark.asyncio
async def test_three_duplicates_give_generic_duplicate_error(make_db):
    db = make_db([duplicate(), duplicate(), duplicate()])
    sleep = SleepRecorder()

    with pytest.raises(DuplicateComplaint) as exc_info:
        await ComplaintSubmitter(db, sleep=sleep).submit(request(), USER_ID)

    assert exc_info.value.message == (
        "A complaint with this tracking ID already exists. Please try again."
    )
    assert db.execute.await_count == 3
    assert sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_exhausted_conflict_without_duplicate_wording_is_unexpected(make_db):
    conflict = IntegrityError("INSERT", {}, PgError("conflict on tracking id", "23505"))
    db = make_db([conflict, conflict, conflict])

    with pytest.raises(BackendError) as exc_info:
        await ComplaintSubmitter(db, sleep=SleepRecorder()).submit(request(), USER_ID)

    assert exc_info.value.message == (
        "An unexpected error occurred while submitting your complaint."
    )


@pytest.mark.asyncio
async def test_unknown_department_fails_without_retry(make_db):
    db = make_db([department_fk()])
    sleep = SleepRecorder()

    with pytest.raises(InvalidReference) as exc_info:
        await ComplaintSubmitter(db, sleep=sleep).submit(
            request(department=str(uuid.uuid4())), USER_ID
        )

    assert exc_info.value.message == "The selected department is invalid"
    assert db.execute.await_count == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_other_errors_fail_immediately_with_backend_message(make_db):
    db = make_db([OperationalError("INSERT", {}, Exception("connection reset by peer"))])
    sleep = SleepRecorder()

    with pytest.raises(BackendError) as exc_info:
        await ComplaintSubmitter(db, sleep=sleep).submit(request(), USER_ID)

    assert exc_info.value.message == "connection reset by peer"
    assert db.execute.await_count == 1
    assert sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("building_office", ["Block B;", "Room #4", "Hall_2", "Room 5\n"])
async def test_invalid_building_office_never_reaches_database(make_db, building_office):
    db = make_db()

    with pytest.raises(ValidationFailed):
        await ComplaintSubmitter(db, sleep=SleepRecorder()).submit(
            request(building_office=building_office), USER_ID
        )

    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_blank_title_rejected(make_db):
    db = make_db()

    with pytest.raises(ValidationFailed):
        await ComplaintSubmitter(db).submit(request(title="   "), USER_ID)

    db.execute.assert_not_awaited()


def test_compose_description():
    assert compose_description("text", None) == "text"
    assert compose_description("text", "") == "text"
    assert compose_description("text", "A-1") == "text\n\nBuilding/Office: A-1"


def test_error_classification():
    assert is_unique_violation(duplicate())
    assert is_unique_violation(IntegrityError("x", {}, Exception("UNIQUE constraint failed")))
    assert not is_unique_violation(department_fk())
    assert is_department_violation(department_fk())
    assert not is_department_violation(
        IntegrityError("x", {}, PgError('violates foreign key constraint "x_company_fkey"', "23503"))
    )


@pytest.mark.parametrize("building_office", ["Block B-12", "Room 5", "LAB-3 North", "7"])
def test_letters_digits_hyphens_and_spaces_pass_validation(building_office):
    validate_submission(request(building_office=building_office))


@pytest.mark.asyncio
async def test_anonymous_submission_stores_pseudonym(make_db, make_result):
    db = make_db([make_result("EN-2025-00010")])

    await ComplaintSubmitter(db, sleep=SleepRecorder()).submit(request(anonymous=True), USER_ID)

    params = inserted_params(db)
    assert params["submitter_pseudonym_hash"] == pseudonymize(USER_ID)
    assert params["submitter_pseudonym_hash"] != USER_ID
    assert params["submitter_user_id"] == uuid.UUID(USER_ID)
    assert db.execute.await_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("saved_default, expect_hash", [(True, True), (False, False), (None, False)])
async def test_unset_anonymity_uses_student_default(make_db, make_result, saved_default, expect_hash):
    db = make_db([make_result(saved_default), make_result("EN-2025-00011")])

    await ComplaintSubmitter(db, sleep=SleepRecorder()).submit(request(anonymous=None), USER_ID)

    assert db.execute.await_count == 2
    assert ("submitter_pseudonym_hash" in inserted_params(db)) is expect_hash


def test_pseudonym_depends_on_salt():
    assert pseudonymize(USER_ID, salt="a") == pseudonymize(USER_ID, salt="a")
    assert pseudonymize(USER_ID, salt="a") != pseudonymize(USER_ID, salt="b")
    assert len(pseudonymize(USER_ID)) == 64
