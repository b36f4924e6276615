"""MkDocs container image builder (config-driven, state-driven).

Core design goals:
- One manifest, three image variants
- Idempotent, resumable build steps
- External tools do the real work (pip, git, docker buildx)
- Centralized logging
"""

__all__ = []
