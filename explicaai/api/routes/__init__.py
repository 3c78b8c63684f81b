"""Route Modules — one file per resource: health, problems, collections, stats.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain business logic (delegate to services)
"""
