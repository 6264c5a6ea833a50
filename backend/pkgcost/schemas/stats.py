"""Schemas for manifest details, build sizes and the merged report."""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class ManifestDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dependency_count: int = Field(0, alias="dependencyCount", ge=0)
    # Usually False or an entry path, but copied verbatim from the manifest.
    has_jsnext: Any = Field(False, alias="hasJSNext")
    has_js_module: Any = Field(False, alias="hasJSModule")
    peer_dependencies: List[str] = Field(default_factory=list, alias="peerDependencies")


class BuildResult(BaseModel):
    size: int = Field(ge=0)
    gzip: int = Field(ge=0)


class BundleAsset(BaseModel):
    """One emitted file as listed in the bundler's statistics."""

    model_config = ConfigDict(extra="ignore")

    name: str
    size: int = Field(ge=0)


class Externals(BaseModel):
    """Module names left out of the bundle."""

    packages: List[str] = Field(default_factory=list)
    built_ins: List[str] = Field(default_factory=list)

    @property
    def names(self) -> List[str]:
        return [*self.packages, *self.built_ins]

    def matches(self, request: str) -> bool:
        """True when ``request`` is an external name or a subpath of one.

        A ``node:`` scheme prefix is ignored, so ``node:path`` matches ``path``.
        """
        request = request.removeprefix("node:")
        return any(request == name or request.startswith(f"{name}/") for name in self.names)


class PackageStats(ManifestDetails):
    """Final report: manifest details merged with the measured sizes."""

    size: int = Field(ge=0)
    gzip: int = Field(ge=0)

    @classmethod
    def merge(cls, details: ManifestDetails, result: BuildResult) -> "PackageStats":
        return cls(**{**details.model_dump(), **result.model_dump()})

    def to_report(self) -> dict:
        """JSON-serializable report using the public camelCase keys."""
        return self.model_dump(by_alias=True)
