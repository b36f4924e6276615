from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..build_config import BuildConfig
from ..variants import select_variant, variant_from_env

logger = logging.getLogger(__name__)


class SelectVariantStep:
    step_id = "10_select_variant"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = BuildConfig(raw=state.get("config") or {})
        opts = state.get("options") or {}

        # CLI flag wins over the IMAGE_VARIANT build flag, which wins over config.
        flag = opts.get("variant") or variant_from_env(os.environ)
        variant = select_variant(flag, default=cfg.default_variant)

        state.setdefault("execution", {})["variant"] = variant.name
        return state
