"""
Validity window tests: inclusive bounds, open bounds and civil-day evaluation
"""
import pytest
from datetime import date, timedelta

from simlok.services.errors import ValidityReason
from simlok.services.qr_codec import QrPayload
from simlok.services.validity import check_validity, describe_violation, is_valid_now
from simlok.utils.timezone import get_civil_timezone

from helpers import FrozenClock, jakarta

D1 = date(2024, 1, 1)
D2 = date(2024, 1, 31)
ONE_DAY = timedelta(days=1)


def payload(valid_from=None, valid_until=None):
    return QrPayload(permit_id='permit-1', issued_signature='0' * 32,
                     valid_from=valid_from, valid_until=valid_until)


class TestClosedWindow:

    @pytest.mark.parametrize('today', [D1, date(2024, 1, 15), D2])
    def test_inside_window_inclusive(self, today):
        assert check_validity(payload(D1, D2), today) is None

    def test_day_before_start(self):
        violation = check_validity(payload(D1, D2), D1 - ONE_DAY)
        assert violation.reason is ValidityReason.NOT_YET_VALID
        assert violation.boundary == D1

    def test_day_after_end(self):
        violation = check_validity(payload(D1, D2), D2 + ONE_DAY)
        assert violation.reason is ValidityReason.EXPIRED
        assert violation.boundary == D2

    def test_single_day_window(self):
        assert check_validity(payload(D1, D1), D1) is None
        assert check_validity(payload(D1, D1), D1 + ONE_DAY).reason is ValidityReason.EXPIRED

    def test_inverted_window_never_valid(self):
        inverted = payload(D2, D1)
        for today in (D1, date(2024, 1, 15), D2):
            violation = check_validity(inverted, today)
            assert violation.reason is ValidityReason.INVALID_WINDOW
            assert violation.boundary is None


class TestOpenBounds:

    @pytest.mark.parametrize('today', [D1, D1 + ONE_DAY, date(2030, 6, 1)])
    def test_only_start(self, today):
        assert check_validity(payload(valid_from=D1), today) is None

    def test_only_start_rejects_earlier_days(self):
        assert check_validity(payload(valid_from=D1), D1 - ONE_DAY).reason is ValidityReason.NOT_YET_VALID

    @pytest.mark.parametrize('today', [date(2000, 1, 1), D2 - ONE_DAY, D2])
    def test_only_end(self, today):
        assert check_validity(payload(valid_until=D2), today) is None

    def test_only_end_rejects_later_days(self):
        assert check_validity(payload(valid_until=D2), D2 + ONE_DAY).reason is ValidityReason.EXPIRED

    def test_no_bounds(self):
        assert check_validity(payload(), date(1999, 12, 31)) is None
        assert check_validity(payload(), date(2099, 1, 1)) is None


class TestIsValidNow:

    def test_uses_civil_date_not_utc(self):
        # 00:30 on Feb 1 in Jakarta is still Jan 31 in UTC
        clock = FrozenClock(jakarta(2024, 2, 1, 0, 30))
        assert clock().date() == date(2024, 1, 31)
        assert is_valid_now(payload(D1, D2), clock, get_civil_timezone('Asia/Jakarta')) is False

    def test_last_minute_of_window(self):
        clock = FrozenClock(jakarta(2024, 1, 31, 23, 59))
        assert is_valid_now(payload(D1, D2), clock) is True

    def test_zone_is_configurable(self):
        # Same instant, but in UTC the calendar still reads Jan 31
        clock = FrozenClock(jakarta(2024, 2, 1, 0, 30))
        assert is_valid_now(payload(D1, D2), clock, get_civil_timezone('UTC')) is True


class TestMessages:

    def test_messages_name_the_boundary(self):
        assert '2024-01-31' in describe_violation(check_validity(payload(D1, D2), D2 + ONE_DAY))
        assert '2024-01-01' in describe_violation(check_validity(payload(D1, D2), D1 - ONE_DAY))
        assert describe_violation(check_validity(payload(D2, D1), D1))
