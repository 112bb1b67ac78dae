"""Inventory category service.

Categories form a two-level tree: top-level (parent) categories and their
sub-categories. A category cannot be deleted while it still has
sub-categories or items assigned to it.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.models.inventory import InventoryCategory, InventoryItem

logger = logging.getLogger(__name__)


class CategoryNotFoundError(LookupError):
    """Raised when a category does not exist."""


class CategoryValidationError(ValueError):
    """Raised when a category change would break the tree or orphan items."""


class CategoryService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, category_id: int) -> InventoryCategory:
        category = self.db.query(InventoryCategory).filter(InventoryCategory.id == category_id).first()
        if category is None:
            raise CategoryNotFoundError(f"Category {category_id} not found")
        return category

    def list_tree(self) -> List[InventoryCategory]:
        """Top-level categories with their sub-categories loaded."""
        return (
            self.db.query(InventoryCategory)
            .options(selectinload(InventoryCategory.subcategories))
            .filter(InventoryCategory.parent_category_id.is_(None))
            .order_by(InventoryCategory.name)
            .all()
        )

    def _check_parent(self, parent_id: Optional[int], category_id: Optional[int] = None) -> None:
        if parent_id is None:
            return
        if parent_id == category_id:
            raise CategoryValidationError("A category cannot be its own parent")
        parent = self.get(parent_id)
        if parent.parent_category_id is not None:
            raise CategoryValidationError("Sub-categories cannot have sub-categories of their own")
        if category_id is not None and self.db.query(InventoryCategory.id).filter(
            InventoryCategory.parent_category_id == category_id
        ).first():
            raise CategoryValidationError("A category with sub-categories cannot become a sub-category")

    def create(self, data: Dict[str, Any]) -> InventoryCategory:
        self._check_parent(data.get("parent_category_id"))
        category = InventoryCategory(**data)
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Category created: {category.name} (id={category.id})")
        return category

    def update(self, category_id: int, changes: Dict[str, Any]) -> InventoryCategory:
        category = self.get(category_id)
        if "parent_category_id" in changes:
            self._check_parent(changes["parent_category_id"], category_id)
        for name, value in changes.items():
            setattr(category, name, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, category_id: int) -> None:
        category = self.get(category_id)
        if self.db.query(InventoryCategory.id).filter(
            InventoryCategory.parent_category_id == category_id
        ).first():
            raise CategoryValidationError(
                "This category has sub-categories. Please delete sub-categories first."
            )
        if self.db.query(InventoryItem.id).filter(InventoryItem.category_id == category_id).first():
            raise CategoryValidationError(
                "This category has items assigned to it. Please reassign items first."
            )
        self.db.delete(category)
        self.db.commit()
        logger.info(f"Category deleted: {category.name} (id={category_id})")
