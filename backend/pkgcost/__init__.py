"""Production-bundle size measurement for registry packages."""
