from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Item(Base):
    """Catalog entry: a simple part or a kit assembled from parts."""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    part_number = Column(String, nullable=True, index=True)

    # 'PART' | 'KIT'
    item_type = Column(Text, nullable=False, default="PART", index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Recipe lines when this item is a kit; listed order is component id order
    components = relationship(
        "KitComponent",
        foreign_keys="KitComponent.kit_id",
        back_populates="kit",
        cascade="all, delete-orphan",
        order_by="KitComponent.id",
    )
    inventories = relationship("InventoryRecord", back_populates="item")

    @property
    def is_kit(self) -> bool:
        return self.item_type == "KIT"

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "part_number": self.part_number,
            "item_type": self.item_type,
            "description": self.description,
            "is_active": bool(self.is_active),
        }


class KitComponent(Base):
    """One recipe line of a kit: `quantity` units of `child_item` per kit."""
    __tablename__ = "kit_components"
    __table_args__ = (
        UniqueConstraint("kit_id", "child_item_id", name="ux_kit_components_kit_child"),
        CheckConstraint("quantity >= 1", name="ck_kit_components_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    kit_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    child_item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    kit = relationship("Item", foreign_keys=[kit_id], back_populates="components")
    child_item = relationship("Item", foreign_keys=[child_item_id])

    @property
    def to_schema(self):
        child = self.child_item
        return {
            "id": self.id,
            "item_id": self.child_item_id,
            "name": child.name if child else None,
            "part_number": child.part_number if child else None,
            "quantity": int(self.quantity),
        }
