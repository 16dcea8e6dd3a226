"""
Settings Service
Reads and maintains the single-row lifecycle settings
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from fishstocking.core.config import settings as app_settings
from fishstocking.core.exceptions import ErrorCode, ValidationError
from fishstocking.models.settings import Setting
from fishstocking.services.stocking.status import StockingSettings

logger = logging.getLogger(__name__)


class SettingsService:
    """Settings provider for the lifecycle engine"""

    def __init__(self, db: Session, user_id: Optional[int] = None):
        self.db = db
        self.user_id = user_id

    def get_settings(self) -> StockingSettings:
        """Current durations; the row is seeded from configuration on first read"""
        row = self._get_or_create()
        return StockingSettings(
            min_time_till_stocking=row.min_time_till_stocking,
            max_time_for_registration=row.max_time_for_registration,
        )

    def update_settings(
        self,
        min_time_till_stocking: Optional[int] = None,
        max_time_for_registration: Optional[int] = None,
    ) -> StockingSettings:
        """Change one or both durations"""
        for name, value in (
            ("min_time_till_stocking", min_time_till_stocking),
            ("max_time_for_registration", max_time_for_registration),
        ):
            if value is not None and value < 0:
                raise ValidationError(ErrorCode.UPDATE_FAILED, f"{name} must not be negative")

        row = self._get_or_create()
        if min_time_till_stocking is not None:
            row.min_time_till_stocking = min_time_till_stocking
        if max_time_for_registration is not None:
            row.max_time_for_registration = max_time_for_registration
        row.updated_by = self.user_id

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update settings: {e}")
            raise

        logger.info(
            f"Settings updated: min_time_till_stocking={row.min_time_till_stocking}, "
            f"max_time_for_registration={row.max_time_for_registration}"
        )
        return self.get_settings()

    def _get_or_create(self) -> Setting:
        row = self.db.query(Setting).order_by(Setting.id).first()
        if row is None:
            row = Setting(
                min_time_till_stocking=app_settings.DEFAULT_MIN_TIME_TILL_STOCKING,
                max_time_for_registration=app_settings.DEFAULT_MAX_TIME_FOR_REGISTRATION,
            )
            self.db.add(row)
            self.db.flush()
            logger.info("Seeded settings row from configuration defaults")
        return row
