"""Tests for canonical asset selection and size measurement."""

import gzip

import pytest

from pkgcost.exceptions import BuildError
from pkgcost.schemas.stats import BundleAsset
from pkgcost.services.output_store import MemoryOutputStore
from pkgcost.services.size_extractor import (
    canonical_asset_name,
    extract_size,
    gzip_size,
    select_canonical_asset,
)

JS = b"function add(a,b){return a+b}" * 40
CSS = b".btn{display:flex;color:red}" * 40


def _store(**files: bytes) -> MemoryOutputStore:
    store = MemoryOutputStore()
    for name, data in files.items():
        store.write(name.replace("_", "."), data)
    return store


def test_css_bundle_wins_over_js():
    assets = [
        BundleAsset(name="runtime.js", size=900),
        BundleAsset(name="bundle.js", size=len(JS)),
        BundleAsset(name="bundle.css", size=len(CSS)),
    ]

    result = extract_size(assets, _store(bundle_js=JS, bundle_css=CSS))

    assert canonical_asset_name(assets) == "bundle.css"
    assert result.size == len(CSS)
    assert result.gzip == gzip_size(CSS)


def test_js_bundle_when_no_stylesheet():
    assets = [BundleAsset(name="runtime.js", size=900), BundleAsset(name="bundle.js", size=len(JS))]

    result = extract_size(assets, _store(bundle_js=JS))

    assert result.size == len(JS)
    assert 0 < result.gzip <= result.size


def test_size_comes_from_statistics_not_bytes():
    assets = [BundleAsset(name="bundle.js", size=12345)]
    assert extract_size(assets, _store(bundle_js=JS)).size == 12345


def test_missing_canonical_asset_is_build_error():
    assets = [BundleAsset(name="runtime.js", size=900)]

    with pytest.raises(BuildError, match="no bundle.js asset"):
        select_canonical_asset(assets)


def test_stylesheet_with_other_name_still_requires_bundle_css():
    assets = [BundleAsset(name="bundle.js", size=10), BundleAsset(name="vendor.css", size=10)]

    with pytest.raises(BuildError):
        extract_size(assets, _store(bundle_js=JS))


def test_asset_missing_from_store_is_build_error():
    assets = [BundleAsset(name="bundle.js", size=len(JS))]

    with pytest.raises(BuildError, match="not emitted"):
        extract_size(assets, MemoryOutputStore())


def test_gzip_size_is_deterministic_and_matches_gzip_module():
    assert gzip_size(JS) == gzip_size(JS)
    assert gzip_size(JS, level=9) == len(gzip.compress(JS, compresslevel=9, mtime=0))
    assert gzip_size(JS) < len(JS)
