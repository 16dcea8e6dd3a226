"""
Statistics Tests
Public totals over completed fish stockings
"""

from datetime import datetime

from sqlalchemy.orm import Session

from fishstocking.services.stocking.statistics import StockingStatistics, StockingStatisticsService

from .conftest import create_stocking, location_data

SIGNATURES = [{"organization": "AAD", "signed_by": "Algis Algaitis", "signature": "data:image/png;base64,AA=="}]


def batch(registry, amount, review_amount=None):
    return {
        "fish_type_id": registry.pike.id,
        "fish_age_id": registry.fry.id,
        "amount": amount,
        "review_amount": review_amount,
    }


class TestStatistics:
    """Test the public statistics"""

    def test_empty_registry(self, db_session: Session, clock):
        """Test an empty registry gives zero totals"""
        assert StockingStatisticsService(db_session, clock).get_statistics() == StockingStatistics(0, 0, 0)

    def test_only_completed_events_count(self, db_session: Session, registry, clock):
        """Test that finished and inspected events contribute their released fish"""
        create_stocking(db_session, datetime(2024, 2, 20, 10, 0),
                        [batch(registry, 100, 100), batch(registry, 50, 0)])
        create_stocking(db_session, datetime(2024, 2, 22, 10, 0), [batch(registry, 40, 40)],
                        signatures=SIGNATURES, location=location_data(cadastral_id="20020002"))
        create_stocking(db_session, datetime(2024, 2, 1, 10, 0), [batch(registry, 500)])
        create_stocking(db_session, datetime(2024, 2, 25, 10, 0), [batch(registry, 70, 70)],
                        canceled_at=datetime(2024, 2, 24, 9, 0), location=location_data(cadastral_id="30030003"))

        statistics = StockingStatisticsService(db_session, clock).get_statistics()

        assert statistics.fish_stocking_count == 2
        assert statistics.fish_count == 140
        assert statistics.fishing_area_count == 3

    def test_removed_events_are_ignored(self, db_session: Session, registry, clock):
        """Test deleted events are left out"""
        create_stocking(db_session, datetime(2024, 2, 20, 10, 0), [batch(registry, 100, 100)],
                        deleted_at=datetime(2024, 2, 21, 9, 0), location=location_data(cadastral_id="40040004"))

        assert StockingStatisticsService(db_session, clock).get_statistics() == StockingStatistics(0, 0, 0)

    def test_partial_review_is_not_counted(self, db_session: Session, registry, clock):
        """Test that an ongoing half-reviewed event adds a fishing area but no fish"""
        create_stocking(db_session, datetime(2024, 2, 28, 10, 0),
                        [batch(registry, 100, 100), batch(registry, 50)])

        statistics = StockingStatisticsService(db_session, clock).get_statistics()

        assert statistics == StockingStatistics(fish_stocking_count=0, fishing_area_count=1, fish_count=0)
