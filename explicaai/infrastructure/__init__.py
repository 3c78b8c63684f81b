"""Infrastructure Layer — external service clients, storage and cross-cutting concerns.

Invariants:
    - Infrastructure implements core Protocols; core never imports from here
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (single responsibility)
"""
