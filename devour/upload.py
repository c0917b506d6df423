"""Hand-off of verified manifests to an upload pipeline."""

import importlib
import logging
from collections.abc import Callable
from typing import Protocol, cast

from devour.errors import UploadError
from devour.models.manifests import VerifiedManifest

logger = logging.getLogger(__name__)


class UploadPipeline(Protocol):
    """Persists the assets of a verified manifest to the target store.

    The pipeline connects using `verified.manifest.settings.dsn` and is
    expected to raise on failure.
    """

    def __call__(self, verified: VerifiedManifest) -> None:
        """Upload the verified manifest."""
        ...


def load_pipeline(target: str) -> UploadPipeline:
    """Import an upload pipeline from a "module:attribute" string.

    Args:
        target (str): e.g. "mypackage.uploads:upload"

    Returns:
        pipeline (UploadPipeline): The imported callable.

    Raises:
        UploadError: If the target cannot be imported or is not callable.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        msg = f"Upload pipeline must be given as 'module:attribute', got {target!r}"
        raise UploadError(msg)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"Could not import upload pipeline module {module_name!r}: {e}"
        raise UploadError(msg) from e
    pipeline = getattr(module, attribute, None)
    if not callable(pipeline):
        msg = f"Upload pipeline {target!r} is missing or not callable"
        raise UploadError(msg)
    return cast(UploadPipeline, pipeline)


def hand_off(
    verified: VerifiedManifest,
    pipeline: UploadPipeline,
    log_fn: Callable = logger.info,
) -> None:
    """Pass a verified manifest to the upload pipeline.

    Uploads are not retried.

    Args:
        verified (VerifiedManifest): The verified manifest.
        pipeline (UploadPipeline): The pipeline to upload with.
        log_fn (Callable): The logger function to use.

    Raises:
        UploadError: If the pipeline fails.
    """
    log_fn(
        f"Uploading {len(verified.all_assets)} assets (main manifest plus {len(verified.sub_manifests)} sub-files)..."
    )
    try:
        pipeline(verified)
    except UploadError:
        raise
    except Exception as e:
        msg = f"Upload failed: {e}"
        raise UploadError(msg) from e
    log_fn("Upload complete.")
