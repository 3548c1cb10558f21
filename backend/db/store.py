from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    racks = relationship("Rack", back_populates="store", cascade="all, delete-orphan", order_by="Rack.id")


class Rack(Base):
    __tablename__ = "racks"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    rack_number = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    store = relationship("Store", back_populates="racks")
    shelves = relationship("Shelf", back_populates="rack", cascade="all, delete-orphan", order_by="Shelf.id")


class Shelf(Base):
    __tablename__ = "shelves"

    id = Column(Integer, primary_key=True, index=True)
    rack_id = Column(Integer, ForeignKey("racks.id", ondelete="CASCADE"), nullable=False, index=True)
    shelf_number = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    rack = relationship("Rack", back_populates="shelves")
