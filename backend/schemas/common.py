"""Shared field types for request bodies and query parameters."""

from typing import Annotated

from pydantic import Field

# upper bound of the INTEGER id columns
MAX_ID = 2**31 - 1

# strict: a JSON boolean is not an id or a count
RecordId = Annotated[int, Field(strict=True, gt=0, le=MAX_ID)]
Quantity = Annotated[int, Field(strict=True, gt=0, le=MAX_ID)]
