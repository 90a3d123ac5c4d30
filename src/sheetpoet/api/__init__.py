"""HTTP surface for SheetPoet (FastAPI)."""
