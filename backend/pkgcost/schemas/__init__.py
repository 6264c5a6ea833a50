"""Pydantic schemas for measurement results."""

from pkgcost.schemas.stats import (
    BuildResult,
    BundleAsset,
    Externals,
    ManifestDetails,
    PackageStats,
)

__all__ = ["BuildResult", "BundleAsset", "Externals", "ManifestDetails", "PackageStats"]
