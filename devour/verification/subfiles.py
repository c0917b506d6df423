"""Loading and verification of sub-manifests."""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from devour.errors import ManifestError, RangeError, StructuralError
from devour.models.assets import (
    CollectionAsset,
    SingleAsset,
    asset_identifier,
    validate_assets,
)
from devour.models.manifests import SubFileDeclaration, VerifiedSubManifest

logger = logging.getLogger(__name__)

Retriever = Callable[[str], Any]


def verify_id_assignments(
    declaration: SubFileDeclaration,
    assets: Sequence[SingleAsset | CollectionAsset],
) -> None:
    """Check that every asset identifier lies within the declared range.

    Identifiers must also be unique within the sub-manifest; gaps within the
    range are allowed.

    Args:
        declaration (SubFileDeclaration): The declaration of the sub-manifest.
        assets (Sequence[SingleAsset | CollectionAsset]): Its validated assets.

    Raises:
        RangeError: If an identifier is out of range or used twice.
    """
    first_use: dict[int, int] = {}
    for i, asset in enumerate(assets):
        identifier = asset_identifier(asset)
        if identifier < declaration.start:
            msg = f"Asset #{i}: identifier {identifier} is below the lower bound {declaration.start} of the declared range [{declaration.start}, {declaration.end}]"
            raise RangeError(msg)
        if identifier > declaration.end:
            msg = f"Asset #{i}: identifier {identifier} is above the upper bound {declaration.end} of the declared range [{declaration.start}, {declaration.end}]"
            raise RangeError(msg)
        if identifier in first_use:
            msg = f"Asset #{i}: duplicate identifier {identifier}, already assigned by asset #{first_use[identifier]}"
            raise RangeError(msg)
        first_use[identifier] = i


def load_and_verify(
    declaration: SubFileDeclaration, retrieve: Retriever
) -> VerifiedSubManifest:
    """Retrieve a sub-manifest, validate its assets and check its identifiers.

    Args:
        declaration (SubFileDeclaration): The declaration of the sub-manifest.
        retrieve (Retriever): Turns a locator into a parsed document.

    Returns:
        sub_manifest (VerifiedSubManifest): The verified sub-manifest.

    Raises:
        ManifestError: Any failure, prefixed with the sub-file path.
    """
    context = f"Sub-file '{declaration.path}'"
    try:
        document = retrieve(declaration.path)
        if not isinstance(document, dict):
            msg = f"expected an object at the document root, got {type(document).__name__}"
            raise StructuralError(msg)
        if "settings" in document:
            msg = "sub-files may only declare 'assets', found 'settings'"
            raise StructuralError(msg)
        assets = validate_assets(document.get("assets"), "Sub-manifest")
        verify_id_assignments(declaration, assets)
    except ManifestError as e:
        raise e.with_context(context) from e
    logger.info(f"{context}: verified {len(assets)} assets.")
    return VerifiedSubManifest(declaration=declaration, assets=assets)


def load_sub_manifests(
    declarations: Sequence[SubFileDeclaration],
    retrieve: Retriever,
    max_workers: int = 1,
) -> list[VerifiedSubManifest]:
    """Load and verify every declared sub-manifest, failing fast.

    With more than one worker the sub-manifests are fetched concurrently, but
    results are consumed in declaration order so the reported error is always
    that of the earliest declared failing sub-file.

    Args:
        declarations (Sequence[SubFileDeclaration]): The sub-file declarations.
        retrieve (Retriever): Turns a locator into a parsed document.
        max_workers (int): The number of sub-manifests to fetch concurrently.

    Returns:
        sub_manifests (list[VerifiedSubManifest]): The verified sub-manifests, in declaration order.
    """
    if max_workers <= 1 or len(declarations) <= 1:
        return [load_and_verify(d, retrieve) for d in declarations]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda d: load_and_verify(d, retrieve), declarations))
