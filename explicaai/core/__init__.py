"""Core Layer — pure domain logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Classifier, complexity detector, prompt builder and validator are pure
      and deterministic; palette picks in collection_rules are the exception

Design Decisions:
    - Functional core separated from imperative shell
    - CancelToken lives here (asyncio.Event, no IO) so core protocols can name it
"""
