"""
Bucket list repository - Data access layer for BucketItem model.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from life_tracker.models import BucketItem


class BucketItemRepository:
    """Repository for BucketItem data access"""

    @staticmethod
    def get_all(
        db: Session,
        user_id: int,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        is_completed: Optional[bool] = None
    ) -> List[BucketItem]:
        """Get bucket items for a user with optional filters"""
        query = db.query(BucketItem).filter(
            BucketItem.user_id == user_id,
            BucketItem.deleted_at.is_(None)
        )
        if category:
            query = query.filter(BucketItem.category == category)
        if difficulty:
            query = query.filter(BucketItem.difficulty == difficulty)
        if is_completed is not None:
            query = query.filter(BucketItem.is_completed == is_completed)
        return query.order_by(BucketItem.created_at.desc()).all()

    @staticmethod
    def get_by_id(db: Session, item_id: int, user_id: int) -> Optional[BucketItem]:
        """Get a non-deleted bucket item owned by the user"""
        return db.query(BucketItem).filter(
            BucketItem.id == item_id,
            BucketItem.user_id == user_id,
            BucketItem.deleted_at.is_(None)
        ).first()

    @staticmethod
    def create(db: Session, item: BucketItem) -> BucketItem:
        """Create new bucket item"""
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def update(db: Session, item: BucketItem) -> BucketItem:
        """Update existing bucket item"""
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def soft_delete(db: Session, item: BucketItem) -> BucketItem:
        """Mark bucket item as deleted"""
        item.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def count_all(db: Session, user_id: int) -> int:
        """Count non-deleted bucket items"""
        return db.query(BucketItem).filter(
            BucketItem.user_id == user_id,
            BucketItem.deleted_at.is_(None)
        ).count()

    @staticmethod
    def count_completed(db: Session, user_id: int) -> int:
        """Count completed, non-deleted bucket items"""
        return db.query(BucketItem).filter(
            BucketItem.user_id == user_id,
            BucketItem.is_completed == True,  # noqa: E712
            BucketItem.deleted_at.is_(None)
        ).count()

    @staticmethod
    def get_total_points(db: Session, user_id: int) -> int:
        """Sum of points earned from bucket items"""
        total = db.query(func.sum(BucketItem.points_earned)).filter(
            BucketItem.user_id == user_id,
            BucketItem.deleted_at.is_(None)
        ).scalar()
        return int(total or 0)
