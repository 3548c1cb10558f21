"""
Multi-location stock (store -> rack -> shelf).

Models:
- InventoryRecord (quantity of one item on one shelf of one store; an item may
  have several records per store)
- InventoryFlow (append-only in/out log written by kit make/break)
"""
