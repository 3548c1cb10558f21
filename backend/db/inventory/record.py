from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class InventoryRecord(Base):
    __tablename__ = "item_inventories"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_item_inventories_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)

    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    rack_id = Column(Integer, ForeignKey("racks.id", ondelete="RESTRICT"), nullable=False, index=True)
    shelf_id = Column(Integer, ForeignKey("shelves.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    item = relationship("Item", back_populates="inventories")
    store = relationship("Store")
    rack = relationship("Rack")
    shelf = relationship("Shelf")
