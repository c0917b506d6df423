"""Verification of a main manifest and its sub-manifests."""

import logging
from collections.abc import Callable
from typing import Any

from devour.errors import StructuralError
from devour.models.assets import validate_assets
from devour.models.manifests import (
    Manifest,
    Settings,
    SubFileDeclaration,
    VerifiedManifest,
)
from devour.models.notation import DSNConfig, normalize
from devour.utils.conformance import conform
from devour.utils.filesys import retrieve_document
from devour.verification.ranges import check_ranges
from devour.verification.subfiles import Retriever, load_sub_manifests

logger = logging.getLogger(__name__)


def verify_root(document: Any) -> Manifest:
    """Validate the main manifest and normalize its dsn and transforms.

    The input document is never modified; the canonical values are
    substituted into a newly built manifest.

    Args:
        document (Any): The parsed main manifest.

    Returns:
        manifest (Manifest): The verified main manifest.

    Raises:
        ManifestError: If any part of the manifest is invalid.
    """
    if not isinstance(document, dict):
        msg = f"Manifest: expected an object at the document root, got {type(document).__name__}"
        raise StructuralError(msg)
    for key in ("settings", "assets"):
        if document.get(key) is None:
            msg = f"Manifest: missing required field '{key}'"
            raise StructuralError(msg)
    raw_settings = document["settings"]
    if not isinstance(raw_settings, dict):
        msg = f"Manifest: 'settings' must be an object, got {type(raw_settings).__name__}"
        raise StructuralError(msg)
    if raw_settings.get("dsn") is None:
        msg = "Manifest: missing required field 'settings.dsn'"
        raise StructuralError(msg)

    dsn = normalize(raw_settings["dsn"], DSNConfig, "Manifest: settings.dsn")
    assets = validate_assets(document["assets"], "Manifest")
    settings = conform({**raw_settings, "dsn": dsn}, Settings, "Manifest: settings")
    return Manifest(settings=settings, assets=assets)


def verify_manifest(
    document: Any,
    retrieve: Retriever = retrieve_document,
    max_workers: int = 1,
    log_fn: Callable = logger.info,
) -> VerifiedManifest:
    """Verify a main manifest and compose it with its sub-manifests.

    Steps run in order and the first failure aborts the whole run; no
    partial result is ever returned.

    Args:
        document (Any): The parsed main manifest.
        retrieve (Retriever): Turns a sub-file locator into a parsed document.
        max_workers (int): The number of sub-manifests to fetch concurrently.
        log_fn (Callable): The logger function to use.

    Returns:
        verified (VerifiedManifest): The manifest ready for upload.

    Raises:
        ManifestError: If the manifest or any sub-manifest is invalid.
    """
    manifest = verify_root(document)
    log_fn(f"Verified main manifest with {len(manifest.assets)} assets.")
    declarations: list[SubFileDeclaration] = manifest.settings.sub_files
    if not declarations:
        return VerifiedManifest(manifest=manifest)
    check_ranges(declarations)
    log_fn(f"Loading {len(declarations)} sub-files.")
    sub_manifests = load_sub_manifests(declarations, retrieve, max_workers)
    return VerifiedManifest(manifest=manifest, sub_manifests=sub_manifests)
