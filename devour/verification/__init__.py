"""Verification of manifests and their sub-manifests."""

from .manifest import verify_manifest, verify_root
from .ranges import check_ranges
from .subfiles import load_and_verify, load_sub_manifests, verify_id_assignments

__all__ = [
    "check_ranges",
    "load_and_verify",
    "load_sub_manifests",
    "verify_id_assignments",
    "verify_manifest",
    "verify_root",
]
