"""Services Layer — orchestration of core logic over the IO boundary.

Invariants:
    - Services depend on core Protocols, never on SQLAlchemy or the Anthropic SDK
    - One service instance per request; no state survives between requests

Design Decisions:
    - Generation, collection lifecycle and intake in separate modules for locality
"""
