# pytest common/tests/test_complaint_types.py -q

import os
import subprocess
import sys

import pytest

from common.complaint_types import (
    STATUS_TRANSITIONS,
    ComplaintStatus,
    priority_tone,
    status_tone,
)
from common.errors import (
    BackendError,
    DuplicateComplaint,
    InvalidReference,
    NotAuthorized,
    ValidationFailed,
)

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

pytestmark = pytest.mark.unit


def test_every_status_has_a_transition_row():
    assert set(STATUS_TRANSITIONS) == set(ComplaintStatus)


@pytest.mark.parametrize(
    "source,target,allowed",
    [
        (ComplaintStatus.SUBMITTED, ComplaintStatus.REVIEWED, True),
        (ComplaintStatus.SUBMITTED, ComplaintStatus.RESOLVED, False),
        (ComplaintStatus.RESOLVED, ComplaintStatus.CLOSED, True),
        (ComplaintStatus.CLOSED, ComplaintStatus.REOPENED, True),
        (ComplaintStatus.CLOSED, ComplaintStatus.IN_PROGRESS, False),
        (ComplaintStatus.ESCALATED, ComplaintStatus.RESOLVED, True),
    ],
)
def test_can_transition_to(source, target, allowed):
    assert source.can_transition_to(target) is allowed


def test_only_closed_is_terminal():
    assert [s for s in ComplaintStatus if s.is_terminal] == [ComplaintStatus.CLOSED]


def test_status_values_match_stored_labels():
    assert ComplaintStatus("In Progress") is ComplaintStatus.IN_PROGRESS


def test_display_tones():
    assert status_tone("Resolved") == "success"
    assert status_tone("In Progress") == "info"
    assert status_tone("Submitted") == "warning"
    assert status_tone("Escalated") == "muted"
    assert priority_tone("Critical") == "destructive"
    assert priority_tone("Low") == "muted"
    assert priority_tone(None) == "muted"


@pytest.mark.parametrize(
    "error,status_code,kind",
    [
        (ValidationFailed("x"), 400, "validation"),
        (DuplicateComplaint("x"), 409, "conflict"),
        (InvalidReference("x"), 422, "referential"),
        (NotAuthorized("x"), 403, "forbidden"),
        (BackendError("x"), 502, "backend"),
    ],
)
def test_error_taxonomy(error, status_code, kind):
    assert error.status_code == status_code
    assert error.kind == kind
    body = error.to_dict()
    assert body["detail"] == "x"
    assert body["toast"]["variant"] == "destructive"


def test_error_module_avoids_deprecated_status_names():
    result = subprocess.run(
        [sys.executable, "-W", "always::DeprecationWarning", "-c", "import common.errors"],
        cwd=ROOT,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
    assert "HTTP_422" not in result.stderr
