from .step_10_select_variant import SelectVariantStep
from .step_20_load_manifest import LoadManifestStep
from .step_30_fetch_theme import FetchThemeStep
from .step_40_assemble_context import AssembleContextStep
from .step_50_build_image import BuildImageStep
from .step_60_verify_image import VerifyImageStep

__all__ = [
    "SelectVariantStep",
    "LoadManifestStep",
    "FetchThemeStep",
    "AssembleContextStep",
    "BuildImageStep",
    "VerifyImageStep",
]
