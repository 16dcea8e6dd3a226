"""
Reference Data Service
Fish types, fish ages and mandatory water bodies
"""
from typing import Iterable, List, Set

from sqlalchemy.orm import Session

from fishstocking.models.reference import FishAge, FishType, MandatoryLocation


class ReferenceDataService:

    def __init__(self, db: Session):
        self.db = db

    def list_fish_types(self) -> List[FishType]:
        return (
            self.db.query(FishType)
            .filter(FishType.deleted_at.is_(None))
            .order_by(FishType.priority.desc(), FishType.label)
            .all()
        )

    def list_fish_ages(self) -> List[FishAge]:
        return (
            self.db.query(FishAge)
            .filter(FishAge.deleted_at.is_(None))
            .order_by(FishAge.priority.desc(), FishAge.label)
            .all()
        )

    def fish_type_exists(self, fish_type_id: int) -> bool:
        return not self.missing_fish_types([fish_type_id])

    def fish_age_exists(self, fish_age_id: int) -> bool:
        return not self.missing_fish_ages([fish_age_id])

    def missing_fish_types(self, ids: Iterable[int]) -> Set[int]:
        """Ids that do not name a live fish type"""
        wanted = set(ids)
        if not wanted:
            return set()
        found = {
            row.id for row in self.db.query(FishType.id)
            .filter(FishType.id.in_(wanted), FishType.deleted_at.is_(None))
        }
        return wanted - found

    def missing_fish_ages(self, ids: Iterable[int]) -> Set[int]:
        """Ids that do not name a live fish age"""
        wanted = set(ids)
        if not wanted:
            return set()
        found = {
            row.id for row in self.db.query(FishAge.id)
            .filter(FishAge.id.in_(wanted), FishAge.deleted_at.is_(None))
        }
        return wanted - found

    def mandatory_cadastral_ids(self, cadastral_ids: Iterable[str]) -> Set[str]:
        """Subset of the given water bodies registered as mandatory"""
        wanted = {c for c in cadastral_ids if c}
        if not wanted:
            return set()
        return {
            row.cadastral_id for row in self.db.query(MandatoryLocation.cadastral_id)
            .filter(MandatoryLocation.cadastral_id.in_(wanted), MandatoryLocation.deleted_at.is_(None))
        }
