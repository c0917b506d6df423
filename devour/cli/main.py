"""CLI commands for devour."""

import json
import logging
from pathlib import Path

import click
import yaml

from devour.config import DevourSettings
from devour.errors import ManifestError, UploadError
from devour.models.assets import (
    CollectionAsset,
    CollectionEntry,
    CollectionField,
    SingleAsset,
    SingleAssetField,
)
from devour.models.manifests import Manifest, Settings
from devour.models.notation import DSNConfig, TransformSpec
from devour.upload import hand_off, load_pipeline
from devour.verification import verify_manifest

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for devour."""


@cli.command()
@click.option(
    "--path",
    help="The http url, s3 uri or file path of the manifest to ingest.",
    prompt="Manifest path or url",
)
def everything(path: str):
    """Devour all assets specified in the manifest according to its settings.

    The source may be an http url, an s3 uri or a filepath. To see an example
    of the manifest format, run "devour make".
    """
    settings = DevourSettings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    path = path.removeprefix("path=")
    retrieve = settings.retriever()

    logger.info(f"Reading manifest from: {path}")
    try:
        document = retrieve(path)
        verified = verify_manifest(
            document, retrieve=retrieve, max_workers=settings.SUBFILE_WORKERS
        )
    except ManifestError as e:
        logger.error(f"Failed to verify manifest:\n\t{e}")
        raise click.ClickException(str(e)) from e
    logger.info(f"Settings for file: {verified.manifest.settings.printable()}")

    if settings.UPLOAD_PIPELINE:
        try:
            pipeline = load_pipeline(settings.UPLOAD_PIPELINE)
            hand_off(verified, pipeline, log_fn=click.echo)
        except UploadError as e:
            logger.error(f"Failed to upload manifest:\n\t{e}")
            raise click.ClickException(str(e)) from e
    else:
        click.echo("No upload pipeline configured, skipping upload.")

    n_sub_assets = sum(len(s.assets) for s in verified.sub_manifests)
    click.echo(
        f"Successfully verified {path}: {len(verified.all_assets)} assets ({n_sub_assets} from {len(verified.sub_manifests)} sub-files)."
    )


@cli.command()
@click.option(
    "--path",
    type=click.Path(exists=False),
    help="The path to write the example manifest to (.json, .yml or .yaml).",
    prompt="Manifest file path",
    default="manifest.yml",
)
def make(path: Path | str):
    """Make an example manifest file."""
    path = Path(path)
    manifest = Manifest(
        settings=Settings(
            dsn=DSNConfig(
                host="localhost",
                port=5432,
                username="admin",
                password="your-password",
                db_name="assetsdb",
            ),
        ),
        assets=[
            SingleAsset(
                type="single",
                use_case="icon",
                single=SingleAssetField(id=1, alias="coin", source="images/coin.png"),
            ),
            CollectionAsset(
                type="collection",
                use_case="environment",
                name="treasure",
                collection=CollectionField(
                    id=2,
                    entries=[
                        CollectionEntry(
                            graphical_asset_id=1,
                            transform=TransformSpec(rotation=90),
                        )
                    ],
                ),
            ),
        ],
    )
    document = manifest.to_document()
    if path.suffix.lower() in (".yml", ".yaml"):
        text = yaml.safe_dump(document, indent=2, sort_keys=False)
    else:
        text = json.dumps(document, indent=2)
    path.write_text(text)
    click.echo(text)
    click.echo(f"Manifest file created at {path}")


if __name__ == "__main__":
    cli()
