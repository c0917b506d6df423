"""Models and validators for manifest asset entries."""

from collections.abc import Callable
from typing import Annotated, Any, Literal

from pydantic import Field

from devour.errors import ManifestError, StructuralError
from devour.models.base import DocumentModel
from devour.models.notation import TransformSpec, normalize
from devour.utils.conformance import conform

AssetType = Literal["single", "collection"]


class SingleAssetField(DocumentModel):
    """A single graphical asset."""

    id: int = Field(
        ..., description="The identifier of the asset.", ge=0, strict=True
    )
    alias: str = Field(..., description="A human readable name.", min_length=1)
    source: str = Field(
        ..., description="A file path or url to fetch the image from.", min_length=1
    )
    width: int | None = Field(default=None, description="The display width.", gt=0)
    height: int | None = Field(default=None, description="The display height.", gt=0)


class SingleAsset(DocumentModel):
    """An asset entry describing one graphical asset."""

    type: Literal["single"]
    use_case: str = Field(..., description="What the asset is used for.", min_length=1)
    single: SingleAssetField


class CollectionEntry(DocumentModel):
    """A reference to a graphical asset placed within a collection."""

    graphical_asset_id: int = Field(
        ..., description="The identifier of the referenced asset.", ge=0, strict=True
    )
    transform: TransformSpec


class CollectionField(DocumentModel):
    """A collection of transformed graphical assets."""

    id: int = Field(
        ..., description="The identifier of the collection.", ge=0, strict=True
    )
    entries: list[CollectionEntry] = Field(..., min_length=1)


class CollectionAsset(DocumentModel):
    """An asset entry describing a named collection."""

    type: Literal["collection"]
    use_case: str = Field(..., description="What the asset is used for.", min_length=1)
    name: str = Field(..., description="The name of the collection.", min_length=1)
    collection: CollectionField


class _CollectionShellField(DocumentModel):
    id: int = Field(..., ge=0, strict=True)
    entries: list[Any] = Field(..., min_length=1)


class _CollectionShell(DocumentModel):
    type: Literal["collection"]
    use_case: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    collection: _CollectionShellField


Asset = Annotated[SingleAsset | CollectionAsset, Field(discriminator="type")]


def validate_single_asset(entry: dict[str, Any], index: int) -> SingleAsset:
    """Validate a single asset entry, including its nested `single` object.

    Args:
        entry (dict[str, Any]): The raw asset entry.
        index (int): The position of the entry in its asset list.

    Returns:
        asset (SingleAsset): The validated asset.
    """
    return conform(entry, SingleAsset, f"Asset #{index} (single)")


def validate_collection_asset(entry: dict[str, Any], index: int) -> CollectionAsset:
    """Validate a collection asset entry and normalize the transform of each entry.

    The first failing entry stops validation; the error names both the
    asset and the entry.

    Args:
        entry (dict[str, Any]): The raw asset entry.
        index (int): The position of the entry in its asset list.

    Returns:
        asset (CollectionAsset): The validated asset with canonical transforms.
    """
    context = f"Asset #{index} (collection)"
    shell = conform(entry, _CollectionShell, context)
    entries: list[CollectionEntry] = []
    for j, raw in enumerate(shell.collection.entries):
        entry_context = f"{context}, entry #{j}"
        if not isinstance(raw, dict):
            msg = f"{entry_context}: expected an object, got {type(raw).__name__}"
            raise StructuralError(msg)
        transform = normalize(
            raw.get("transform"), TransformSpec, f"{entry_context}, transform"
        )
        entries.append(
            conform({**raw, "transform": transform}, CollectionEntry, entry_context)
        )
    return CollectionAsset(
        type="collection",
        use_case=shell.use_case,
        name=shell.name,
        collection=CollectionField(id=shell.collection.id, entries=entries),
    )


AssetValidators: dict[AssetType, Callable[[dict[str, Any], int], Any]] = {
    "single": validate_single_asset,
    "collection": validate_collection_asset,
}


def validate_asset(entry: Any, index: int) -> SingleAsset | CollectionAsset:
    """Validate an asset entry according to its `type` discriminant.

    Args:
        entry (Any): The raw asset entry.
        index (int): The position of the entry in its asset list.

    Returns:
        asset (SingleAsset | CollectionAsset): The validated asset.

    Raises:
        StructuralError: If the entry is not an object or its type is unknown.
    """
    if isinstance(entry, SingleAsset | CollectionAsset):
        return entry
    if not isinstance(entry, dict):
        msg = f"Asset #{index}: expected an object, got {type(entry).__name__}"
        raise StructuralError(msg)
    asset_type = entry.get("type")
    if not isinstance(asset_type, str) or asset_type not in AssetValidators:
        msg = f"Asset #{index}: unknown type {asset_type!r}, expected one of {list(AssetValidators)}"
        raise StructuralError(msg)
    return AssetValidators[asset_type](entry, index)


def validate_assets(assets: Any, owner: str) -> list[SingleAsset | CollectionAsset]:
    """Validate every entry of an asset list, failing on the first bad entry.

    Args:
        assets (Any): The raw `assets` value of a manifest or sub-manifest.
        owner (str): Locating prefix for error messages.

    Returns:
        validated (list[SingleAsset | CollectionAsset]): The validated assets, in order.
    """
    if not isinstance(assets, list) or not assets:
        msg = f"{owner}: 'assets' must be a non-empty list"
        raise StructuralError(msg)
    try:
        return [validate_asset(entry, i) for i, entry in enumerate(assets)]
    except ManifestError as e:
        raise e.with_context(owner) from e


def asset_identifier(asset: SingleAsset | CollectionAsset) -> int:
    """Return the identifier an asset defines.

    Args:
        asset (SingleAsset | CollectionAsset): The validated asset.

    Returns:
        identifier (int): `single.id` or `collection.id`.
    """
    if isinstance(asset, SingleAsset):
        return asset.single.id
    elif isinstance(asset, CollectionAsset):
        return asset.collection.id
    else:
        msg = f"Unknown asset type: {type(asset)}"
        raise TypeError(msg)
