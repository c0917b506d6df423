"""Filesystem utilities."""

import hashlib
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import boto3
import requests
import yaml
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import AnyUrl

from devour.errors import RetrievalError

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client as S3ClientType
else:
    S3ClientType = object

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("s3://", "http://", "https://")


def fetch_uri(
    uri: AnyUrl | str,
    local_path: Path,
    use_cache: bool = True,
    logger_fn: Callable = logger.info,
    s3: S3ClientType | None = None,
    timeout: float = 60,
) -> Path:
    """Fetch a file from a uri and return the local path.

    Caching is enabled by default and works by
    checking if the file exists locally before downloading it
    to avoid downloading the same file multiple times.

    Args:
        uri (AnyUrl): The uri to fetch
        local_path (Path): The local path to save the fetched file
        use_cache (bool): Whether to use the cache
        logger_fn (Callable): The logger function to use
        s3 (S3Client): The S3 client to use, created on demand when omitted
        timeout (float): The timeout in seconds for http requests

    Returns:
        local_path (Path): The local path of the fetched file
    """
    if isinstance(uri, str):
        uri = AnyUrl(uri)
    if uri.scheme == "s3":
        bucket = uri.host
        if not uri.path or uri.path == "/":
            raise ValueError(f"S3URI:NO_PATH:{uri}")
        if not bucket:
            raise ValueError(f"S3URI:NO_BUCKET:{uri}")
        path = uri.path[1:]
        if not local_path.exists() or not use_cache:
            logger_fn(f"Downloading {uri}...")
            local_path.parent.mkdir(parents=True, exist_ok=True)
            if s3 is None:
                s3 = boto3.client("s3")
            s3.download_file(bucket, path, str(local_path))
        else:
            logger_fn(f"File {local_path} already exists, skipping download.")
    elif uri.scheme == "http" or uri.scheme == "https":
        if not local_path.exists() or not use_cache:
            logger_fn(f"Downloading {uri}...")
            response = requests.get(str(uri), timeout=timeout)
            response.raise_for_status()
            local_path.parent.mkdir(parents=True, exist_ok=True)
            with open(local_path, "wb") as f:
                f.write(response.content)
        else:
            logger_fn(f"File {local_path} already exists, skipping download.")
    else:
        raise NotImplementedError(f"URI:SCHEME:{uri.scheme}")
    return local_path


def parse_document(text: str, suffix: str) -> Any:
    """Parse the text of a manifest document.

    Args:
        text (str): The raw document.
        suffix (str): The file suffix; yaml for .yml/.yaml, json otherwise.

    Returns:
        document (Any): The parsed document.
    """
    if suffix.lower() in (".yml", ".yaml"):
        return yaml.safe_load(text)
    return json.loads(text)


def cache_path(uri: AnyUrl, cache_dir: Path) -> Path:
    """Return the local path a remote document is cached at.

    Args:
        uri (AnyUrl): The remote uri.
        cache_dir (Path): The root of the cache.

    Returns:
        local_path (Path): cache_dir / host / path, with a digest of the
            query added to the file name when the uri has one.
    """
    path = Path((uri.path or "").lstrip("/") or "index")
    if uri.query:
        digest = hashlib.sha256(uri.query.encode()).hexdigest()[:12]
        path = path.with_name(f"{path.stem}-{digest}{path.suffix}")
    return cache_dir / (uri.host or "_") / path


def retrieve_document(
    locator: str,
    cache_dir: Path = Path("cache"),
    use_cache: bool = False,
    timeout: float = 60,
    logger_fn: Callable = logger.info,
) -> Any:
    """Read a manifest from a file path or remote uri and parse it.

    Args:
        locator (str): A file path, or an s3/http(s) uri.
        cache_dir (Path): Where remote documents are downloaded to.
        use_cache (bool): Whether to reuse previously downloaded documents.
        timeout (float): The timeout in seconds for http requests.
        logger_fn (Callable): The logger function to use.

    Returns:
        document (Any): The parsed document; no type checks are made.

    Raises:
        RetrievalError: If the document cannot be fetched, read or parsed.
    """
    if not locator:
        msg = "Invalid source locator: empty"
        raise RetrievalError(msg)
    if locator.startswith("www."):
        locator = f"https://{locator}"
    if locator.startswith(REMOTE_SCHEMES):
        try:
            uri = AnyUrl(locator)
            local_path = fetch_uri(
                uri,
                cache_path(uri, cache_dir),
                use_cache=use_cache,
                logger_fn=logger_fn,
                timeout=timeout,
            )
        except (
            ValueError,
            NotImplementedError,
            requests.RequestException,
            BotoCoreError,
            ClientError,
        ) as e:
            msg = f"Failed to fetch {locator}: {e}"
            raise RetrievalError(msg) from e
    else:
        local_path = Path(locator)
        if not local_path.is_file():
            msg = f'File "{locator}" does not exist. WD: {Path.cwd()}'
            raise RetrievalError(msg)
    try:
        text = local_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Failed to read {locator}: {e}"
        raise RetrievalError(msg) from e
    try:
        return parse_document(text, local_path.suffix)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        msg = f"Failed to parse {locator}: {e}"
        raise RetrievalError(msg) from e
