"""Models for manifests and sub-manifests."""

from pydantic import Field, field_validator

from devour.models.assets import Asset
from devour.models.base import DocumentModel
from devour.models.notation import DSNConfig


class SubFileDeclaration(DocumentModel):
    """A sub-manifest declared in the settings of the main manifest."""

    path: str = Field(
        ..., description="A file path or url locating the sub-manifest.", min_length=1
    )
    start: int = Field(
        ...,
        description="The first identifier the sub-manifest may assign.",
        ge=0,
        strict=True,
    )
    end: int = Field(
        ...,
        description="The last identifier the sub-manifest may assign.",
        ge=0,
        strict=True,
    )

    def __str__(self) -> str:
        """Printable form."""
        return f"{self.path} [{self.start}, {self.end}]"


class Settings(DocumentModel):
    """The settings of the main manifest."""

    dsn: DSNConfig
    sub_files: list[SubFileDeclaration] = Field(
        default_factory=list, description="Sub-manifests extending the asset list."
    )

    @field_validator("sub_files", mode="before")
    @classmethod
    def null_sub_files_as_empty(cls, value):
        """Treat an explicit null the same as no sub-files."""
        if value is None:
            return []
        return value

    def printable(self) -> str:
        """Return a table of the settings with the dsn redacted."""
        sub_files = ", ".join(str(s) for s in self.sub_files) or "none"
        return f"\n\tdsn: {self.dsn}\n\tsubFiles: {sub_files}"


class Manifest(DocumentModel):
    """The main manifest of an ingest job."""

    settings: Settings
    assets: list[Asset] = Field(..., min_length=1)


class VerifiedSubManifest(DocumentModel):
    """A sub-manifest whose assets have been validated against its declaration."""

    declaration: SubFileDeclaration
    assets: list[Asset] = Field(..., min_length=1)


class VerifiedManifest(DocumentModel):
    """A main manifest composed with its verified sub-manifests.

    This is what gets handed to the upload pipeline.
    """

    manifest: Manifest
    sub_manifests: list[VerifiedSubManifest] = Field(default_factory=list)

    @property
    def all_assets(self) -> list[Asset]:
        """Return the assets of the main manifest followed by those of each sub-manifest."""
        assets = list(self.manifest.assets)
        for sub_manifest in self.sub_manifests:
            assets.extend(sub_manifest.assets)
        return assets
