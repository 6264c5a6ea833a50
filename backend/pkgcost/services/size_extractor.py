"""Picks the canonical bundle asset and measures its raw and gzip size."""

import gzip
from typing import Iterable, Optional

from pkgcost.config import settings
from pkgcost.exceptions import BuildError
from pkgcost.logging_config import get_logger
from pkgcost.schemas.stats import BuildResult, BundleAsset
from pkgcost.services.bundler import CSS_BUNDLE, JS_BUNDLE
from pkgcost.services.output_store import OutputStore

logger = get_logger(__name__)


def canonical_asset_name(assets: Iterable[BundleAsset]) -> str:
    """The CSS bundle wins whenever any emitted asset is a stylesheet."""
    return CSS_BUNDLE if any(asset.name.endswith(".css") for asset in assets) else JS_BUNDLE


def select_canonical_asset(assets: list[BundleAsset]) -> BundleAsset:
    name = canonical_asset_name(assets)
    matches = [asset for asset in assets if asset.name == name]
    if not matches:
        emitted = ", ".join(asset.name for asset in assets) or "none"
        raise BuildError(
            {"asset": name, "emitted": [asset.name for asset in assets]},
            f"BuildError: no {name} asset found (emitted: {emitted})",
        )
    return matches[-1]


def gzip_size(data: bytes, level: Optional[int] = None) -> int:
    """Length of ``data`` gzip-compressed with a fixed header timestamp."""
    compresslevel = settings.gzip_level if level is None else level
    return len(gzip.compress(data, compresslevel=compresslevel, mtime=0))


def extract_size(assets: list[BundleAsset], store: OutputStore) -> BuildResult:
    """
    Measure the canonical asset.

    ``size`` is the asset size reported by the bundler statistics; ``gzip``
    is computed from the asset bytes held in ``store``.

    Raises:
        BuildError: If the canonical asset is missing from the statistics or the store
    """
    asset = select_canonical_asset(assets)
    if not store.exists(asset.name):
        raise BuildError(
            {"asset": asset.name},
            f"BuildError: {asset.name} listed in statistics but not emitted",
        )
    result = BuildResult(size=asset.size, gzip=gzip_size(store.read(asset.name)))
    logger.debug("build result %s", result.model_dump())
    return result
