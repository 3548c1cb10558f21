from typing import List, Optional

from pydantic import BaseModel, field_validator, model_validator

from .common import Quantity, RecordId


class MakeKitRequest(BaseModel):
    kit_id: RecordId
    store_id: RecordId
    in_flow: Quantity
    # accepted for compatibility with the dashboard form, not used
    out_flow: Optional[int] = None


class BreakKitRequest(BaseModel):
    kit_id: RecordId
    store_id: RecordId
    out_flow: Quantity
    in_flow: Optional[int] = None


class KitComponentInput(BaseModel):
    item_id: RecordId
    quantity: Quantity


class KitCreate(BaseModel):
    name: str
    part_number: Optional[str] = None
    description: Optional[str] = None
    components: List[KitComponentInput]

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("part_number", "description")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _validate_components(self):
        if not self.components:
            raise ValueError("Kit must have at least one component")
        seen = set()
        for c in self.components:
            if c.item_id in seen:
                raise ValueError(f"item {c.item_id} is listed more than once")
            seen.add(c.item_id)
        return self
