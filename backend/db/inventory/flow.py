from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class InventoryFlow(Base):
    __tablename__ = "inventory_flows"

    id = Column(Integer, primary_key=True, index=True)

    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    in_flow = Column(Integer, nullable=False, default=0)
    out_flow = Column(Integer, nullable=False, default=0)
    reason = Column(Text, nullable=False, index=True)  # 'make_kit' | 'break_kit'

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    item = relationship("Item")
    store = relationship("Store")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "item_id": self.item_id,
            "store_id": self.store_id,
            "in_flow": int(self.in_flow or 0),
            "out_flow": int(self.out_flow or 0),
            "reason": self.reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
