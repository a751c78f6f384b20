"""
Bucket list management service.
"""
from collections import Counter
from typing import List, Optional
from sqlalchemy.orm import Session

from life_tracker.constants import BucketCategory, BucketDifficulty
from life_tracker.exceptions import NotFoundException, InvalidStateException
from life_tracker.models import BucketItem
from life_tracker.repositories.bucket_repository import BucketItemRepository
from life_tracker.services.progress_service import UserLockRegistry


class BucketListService:
    """Service for managing bucket list items"""

    def __init__(self, db: Session, locks: Optional[UserLockRegistry] = None):
        self.db = db
        self.locks = locks or UserLockRegistry()
        self.bucket_repo = BucketItemRepository()

    def get_items(
        self,
        user_id: int,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        is_completed: Optional[bool] = None
    ) -> List[BucketItem]:
        return self.bucket_repo.get_all(self.db, user_id, category, difficulty, is_completed)

    def get_item(self, item_id: int, user_id: int) -> BucketItem:
        item = self.bucket_repo.get_by_id(self.db, item_id, user_id)
        if item is None:
            raise NotFoundException("Bucket item", item_id)
        return item

    def update_item(self, item_id: int, user_id: int, item_update) -> BucketItem:
        """Update item fields; a completed item keeps the points it earned"""
        update_data = item_update.model_dump(exclude_unset=True)
        if update_data.get("difficulty") is not None:
            update_data["difficulty"] = BucketDifficulty(update_data["difficulty"]).value
        if update_data.get("category") is not None:
            update_data["category"] = BucketCategory(update_data["category"]).value

        with self.locks.lock_for(user_id):
            item = self.get_item(item_id, user_id)
            if item.is_completed and "difficulty" in update_data:
                raise InvalidStateException("Cannot change difficulty of a completed bucket item")
            for key, value in update_data.items():
                setattr(item, key, value)
            return self.bucket_repo.update(self.db, item)

    def delete_item(self, item_id: int, user_id: int) -> BucketItem:
        item = self.get_item(item_id, user_id)
        return self.bucket_repo.soft_delete(self.db, item)

    def get_stats(self, user_id: int) -> dict:
        items = self.bucket_repo.get_all(self.db, user_id)
        completed = self.bucket_repo.count_completed(self.db, user_id)
        return {
            "total": len(items),
            "completed": completed,
            "pending": len(items) - completed,
            "total_points": self.bucket_repo.get_total_points(self.db, user_id),
            "by_category": dict(Counter(i.category for i in items)),
        }
