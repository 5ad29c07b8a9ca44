from datetime import datetime, timedelta, timezone

import pytest

from assignments.status import derive_status

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
YESTERDAY = NOW - timedelta(days=1)
TOMORROW = NOW + timedelta(days=1)


@pytest.mark.parametrize("start_date", [None, YESTERDAY, NOW, TOMORROW])
def test_unpublished_exam_is_pending(start_date):
    assert derive_status(False, start_date, NOW) == "pending"


def test_published_exam_starting_later_is_scheduled():
    assert derive_status(True, TOMORROW, NOW) == "scheduled"
    assert derive_status(True, NOW + timedelta(seconds=1), NOW) == "scheduled"


@pytest.mark.parametrize("start_date", [None, YESTERDAY, NOW])
def test_published_exam_already_started_is_available(start_date):
    assert derive_status(True, start_date, NOW) == "available"
