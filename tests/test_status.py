"""
Status Derivation Tests
Lifecycle status computed from event times, signatures and batch reviews
"""

import logging
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from fishstocking.services.stocking.status import (
    FishStockingStatus,
    StockingSettings,
    derive_status,
    end_of_day,
    is_deletable,
    is_fully_reviewed,
    is_time_before_review,
    review_window_end,
    start_of_day,
)

SETTINGS = StockingSettings(min_time_till_stocking=1, max_time_for_registration=10)
EVENT_TIME = datetime(2024, 3, 10, 10, 0)


def stocking(event_time=EVENT_TIME, canceled_at=None, signatures=None):
    return SimpleNamespace(id=1, event_time=event_time, canceled_at=canceled_at, signatures=signatures)


def batch(review_amount=None):
    return SimpleNamespace(review_amount=review_amount)


SIGNATURES = [{"organization": "AAD", "signed_by": "Algis Algaitis", "signature": "data:image/png;base64,AA=="}]


class TestDayBoundaries:
    """Test calendar day helpers"""

    def test_start_and_end_of_day(self):
        """Test that a moment is widened to its whole local day"""
        moment = datetime(2024, 3, 10, 15, 42, 7)

        assert start_of_day(moment) == datetime(2024, 3, 10, 0, 0)
        assert end_of_day(moment) == datetime(2024, 3, 10, 23, 59, 59, 999999)

    def test_review_window_end(self):
        """Test the review window closes at the end of the last allowed day"""
        assert review_window_end(EVENT_TIME, SETTINGS) == datetime(2024, 3, 20, 23, 59, 59, 999999)


class TestFullyReviewed:
    """Test the fully reviewed predicate"""

    def test_no_batches_is_not_reviewed(self):
        """Test an event without batches is not reviewed"""
        assert is_fully_reviewed([]) is False

    def test_partial_review_is_not_reviewed(self):
        """Test one unreviewed batch keeps the event unreviewed"""
        assert is_fully_reviewed([batch(100), batch(None)]) is False

    def test_zero_review_amount_counts_as_reviewed(self):
        """Test that releasing no fish still completes the review"""
        assert is_fully_reviewed([batch(0), batch(25)]) is True


class TestTimeBeforeReview:
    """Test the minimum lead time check"""

    def test_exactly_min_days_ahead(self):
        """Test exactly the minimum lead time is enough"""
        now = EVENT_TIME - timedelta(days=1)
        assert is_time_before_review(EVENT_TIME, SETTINGS, now) is True

    def test_less_than_min_days_ahead(self):
        """Test a minute short of the lead time is not enough"""
        now = EVENT_TIME - timedelta(days=1) + timedelta(minutes=1)
        assert is_time_before_review(EVENT_TIME, SETTINGS, now) is False

    def test_zero_minimum_allows_same_moment(self):
        """Test a zero minimum allows the event moment itself"""
        settings = StockingSettings(min_time_till_stocking=0, max_time_for_registration=10)
        assert is_time_before_review(EVENT_TIME, settings, EVENT_TIME) is True


class TestDeletionWindow:
    """Test the deletion lead time check"""

    def test_exactly_min_days_ahead_is_too_late(self):
        """Test that deletion needs strictly more than the minimum lead time"""
        now = EVENT_TIME - timedelta(days=1)
        assert is_deletable(EVENT_TIME, SETTINGS, now) is False

    def test_more_than_min_days_ahead(self):
        """Test that one more second is enough"""
        now = EVENT_TIME - timedelta(days=1, seconds=1)
        assert is_deletable(EVENT_TIME, SETTINGS, now) is True


class TestDeriveStatus:
    """Test status priority and time windows"""

    def test_canceled_wins_over_everything(self):
        """Test that a cancellation hides reviews and signatures"""
        event = stocking(canceled_at=datetime(2024, 3, 9, 8, 0), signatures=SIGNATURES)

        status = derive_status(event, [batch(100)], SETTINGS, datetime(2024, 3, 30))

        assert status == FishStockingStatus.CANCELED

    def test_inspected_when_reviewed_and_signed(self):
        """Test a reviewed and signed event is inspected"""
        event = stocking(signatures=SIGNATURES)

        status = derive_status(event, [batch(100), batch(0)], SETTINGS, datetime(2024, 3, 11))

        assert status == FishStockingStatus.INSPECTED

    def test_finished_when_reviewed_without_signatures(self):
        """Test a reviewed unsigned event is finished"""
        status = derive_status(stocking(), [batch(100)], SETTINGS, datetime(2024, 3, 11))

        assert status == FishStockingStatus.FINISHED

    def test_empty_signature_list_is_not_inspected(self):
        """Test an empty signature list does not inspect"""
        status = derive_status(stocking(signatures=[]), [batch(100)], SETTINGS, datetime(2024, 3, 11))

        assert status == FishStockingStatus.FINISHED

    def test_finished_even_before_the_event_day(self):
        """Test that a full review short-circuits the time windows"""
        status = derive_status(stocking(), [batch(5)], SETTINGS, datetime(2024, 3, 1))

        assert status == FishStockingStatus.FINISHED

    def test_upcoming_before_event_day(self):
        """Test an event is upcoming before its day"""
        status = derive_status(stocking(), [batch()], SETTINGS, datetime(2024, 3, 9, 23, 59))

        assert status == FishStockingStatus.UPCOMING

    def test_ongoing_on_event_day_before_event_hour(self):
        """Test that the stocking window opens at midnight of the event day"""
        status = derive_status(stocking(), [batch()], SETTINGS, datetime(2024, 3, 10, 0, 1))

        assert status == FishStockingStatus.ONGOING

    def test_ongoing_on_last_review_day(self):
        """Test an event is ongoing on the last review day"""
        status = derive_status(stocking(), [batch()], SETTINGS, datetime(2024, 3, 20, 23, 0))

        assert status == FishStockingStatus.ONGOING

    def test_not_finished_after_review_window(self):
        """Test an event is not finished after the review window"""
        status = derive_status(stocking(), [batch()], SETTINGS, datetime(2024, 3, 21, 0, 0, 1))

        assert status == FishStockingStatus.NOT_FINISHED

    def test_partial_review_follows_time_windows(self):
        """Test a partial review falls back to the time windows"""
        batches = [batch(100), batch(None)]

        assert derive_status(stocking(), batches, SETTINGS, datetime(2024, 3, 12)) == FishStockingStatus.ONGOING
        assert derive_status(stocking(), batches, SETTINGS, datetime(2024, 4, 1)) == FishStockingStatus.NOT_FINISHED

    def test_event_without_batches_is_never_finished(self):
        """Test an event without batches never finishes"""
        assert derive_status(stocking(), [], SETTINGS, datetime(2024, 4, 1)) == FishStockingStatus.NOT_FINISHED

    def test_window_boundary_is_undetermined(self, caplog):
        """Test that the exact opening instant yields no status and is logged"""
        with caplog.at_level(logging.ERROR):
            status = derive_status(stocking(), [batch()], SETTINGS, datetime(2024, 3, 10, 0, 0))

        assert status is None
        assert "Could not derive status" in caplog.text

    def test_ongoing_for_past_event_inside_window(self):
        """Test an event eight days ago with a ten day review window"""
        now = datetime(2024, 3, 18, 9, 0)
        settings = StockingSettings(min_time_till_stocking=2, max_time_for_registration=10)

        assert derive_status(stocking(), [batch()], settings, now) == FishStockingStatus.ONGOING

    def test_not_finished_with_shorter_window(self):
        """Test the same event with a five day review window"""
        now = datetime(2024, 3, 18, 9, 0)
        settings = StockingSettings(min_time_till_stocking=2, max_time_for_registration=5)

        assert derive_status(stocking(), [batch()], settings, now) == FishStockingStatus.NOT_FINISHED

    def test_three_days_after_event_with_five_day_window(self):
        """Test a five day window around three and nine days after"""
        event = stocking(event_time=datetime(2024, 3, 1, 10, 0))
        settings = StockingSettings(min_time_till_stocking=2, max_time_for_registration=5)

        assert derive_status(event, [batch()], settings, datetime(2024, 3, 4, 12, 0)) == FishStockingStatus.ONGOING
        assert derive_status(event, [batch()], settings, datetime(2024, 3, 10, 12, 0)) == FishStockingStatus.NOT_FINISHED

    @pytest.mark.parametrize("offset_hours", [-200, -24, -1, 1, 12, 100, 240, 260, 1000])
    def test_status_defined_away_from_boundaries(self, offset_hours):
        """Test every instant off the boundaries has a status"""
        now = EVENT_TIME + timedelta(hours=offset_hours, minutes=7)

        assert derive_status(stocking(), [batch()], SETTINGS, now) is not None
