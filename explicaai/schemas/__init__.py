"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary (problem text bounds, UUIDs)
    - Responses are built from core records, never from ORM rows

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
