"""Services package."""

from pkgcost.services.package_stats import PackageStatsService, get_package_stats

__all__ = ["PackageStatsService", "get_package_stats"]
