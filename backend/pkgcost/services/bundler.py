"""Webpack production builds of a synthetic entry point.

The builder renders a small Node program that configures webpack, swaps the
compiler's output filesystem for an in-memory ``memfs`` volume, runs one
compile and prints the statistics plus the emitted bytes (base64) after a
marker line. The program is fed to ``node -`` on stdin, so apart from the
entry file nothing is written to disk.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import Any, Optional

from pkgcost.config import settings
from pkgcost.exceptions import BuildError
from pkgcost.logging_config import get_logger
from pkgcost.schemas.stats import BundleAsset, Externals
from pkgcost.services.commands import CommandResult, CommandRunner, run_command
from pkgcost.services.manifest import STUBBED_BUILT_INS
from pkgcost.services.output_store import MemoryOutputStore
from pkgcost.services.workspace import Workspace

logger = get_logger(__name__)

ENTRY_CHUNK = "bundle"
RUNTIME_CHUNK = "runtime"
JS_BUNDLE = f"{ENTRY_CHUNK}.js"
CSS_BUNDLE = f"{ENTRY_CHUNK}.css"
RESULT_MARKER = "@@pkgcost-build-result@@"

BUILD_SCRIPT_TEMPLATE = Template(
    r"""// Generated for a single measurement build.
const path = require("path");

const TOOLCHAIN = $toolchain;
const load = (name) => require(require.resolve(name, { paths: [TOOLCHAIN] }));

const webpack = load("webpack");
const { createFsFromVolume, Volume } = load("memfs");
const MiniCssExtractPlugin = load("mini-css-extract-plugin");
const TerserPlugin = load("terser-webpack-plugin");
const CssMinimizerPlugin = load("css-minimizer-webpack-plugin");
const autoprefixer = load("autoprefixer");

const MARKER = $marker;
const OUTPUT = "/dist";
const EXTERNALS = $externals;
const bare = (request) => request.replace(/^node:/, "");
const isExternal = (request) => {
  const name = bare(request);
  return EXTERNALS.some((external) => name === external || name.startsWith(external + "/"));
};

const extractCss = [MiniCssExtractPlugin.loader, "css-loader"];

const config = {
  mode: "production",
  context: $context,
  entry: { $entry_chunk: $entry },
  bail: true,
  target: "web",
  output: {
    path: OUTPUT,
    filename: "[name].js",
  },
  resolve: {
    modules: $resolve_modules,
    symlinks: false,
    fallback: $fallback,
  },
  resolveLoader: {
    modules: [path.join(TOOLCHAIN, "node_modules")],
  },
  module: {
    noParse: [/\.min\.js$$/],
    rules: [
      { test: /\.css$$/, use: extractCss },
      {
        test: /\.(scss|sass)$$/,
        use: [
          ...extractCss,
          {
            loader: "postcss-loader",
            options: {
              postcssOptions: {
                plugins: [autoprefixer({ overrideBrowserslist: $browsers })],
              },
            },
          },
          "sass-loader",
        ],
      },
    ],
  },
  externals: [
    ({ request }, callback) =>
      request && isExternal(request) ? callback(null, "commonjs " + bare(request)) : callback(),
  ],
  plugins: [
    new webpack.NormalModuleReplacementPlugin(/^node:/, (resource) => {
      resource.request = bare(resource.request);
    }),
    new webpack.DefinePlugin({ "process.env.NODE_ENV": JSON.stringify("production") }),
    new webpack.IgnorePlugin({ resourceRegExp: /^electron$$/ }),
    new MiniCssExtractPlugin({ filename: "[name].css" }),
  ],
  optimization: {
    runtimeChunk: { name: $runtime_chunk },
    minimize: true,
    minimizer: [
      new TerserPlugin({
        parallel: $workers,
        extractComments: false,
        terserOptions: { ie8: false, safari10: false },
      }),
      new CssMinimizerPlugin({ parallel: $workers }),
    ],
  },
  performance: { hints: false },
};

const outputFs = createFsFromVolume(new Volume());
outputFs.join = path.posix.join;

const report = (payload) => {
  process.stdout.write("\n" + MARKER + JSON.stringify(payload) + "\n");
};

const compiler = webpack(config);
compiler.outputFileSystem = outputFs;
compiler.run((err, stats) => {
  const json = stats
    ? stats.toJson({
        all: false,
        assets: true,
        assetsSpace: Infinity,
        cachedAssets: true,
        errors: true,
        errorDetails: true,
        warnings: true,
      })
    : null;
  const files = {};
  if (json && !(json.errors || []).length) {
    for (const asset of json.assets || []) {
      const file = path.posix.join(OUTPUT, asset.name);
      if (outputFs.existsSync(file)) {
        files[asset.name] = outputFs.readFileSync(file).toString("base64");
      }
    }
  }
  const error = err && !stats ? String(err.details || err.stack || err) : null;
  compiler.close(() => report({ error, stats: json, files }));
});
"""
)


@dataclass
class BuildOutput:
    """Assets listed in the webpack statistics plus the emitted bytes."""

    assets: list[BundleAsset]
    store: MemoryOutputStore
    warnings: list[Any] = field(default_factory=list)


def stub_fallbacks() -> dict[str, bool]:
    """Built-ins resolved to empty modules, in bare and ``node:`` form."""
    fallbacks: dict[str, bool] = {}
    for name in STUBBED_BUILT_INS:
        fallbacks[name] = False
        fallbacks[f"node:{name}"] = False
    return fallbacks


def render_build_script(
    *,
    package_name: str,
    entry_point: Path,
    workspace: Workspace,
    externals: Externals,
    toolchain_path: Path,
    workers: int,
    browsers: list[str],
) -> str:
    """Render the Node build program; every injected value is JSON-encoded."""
    return BUILD_SCRIPT_TEMPLATE.substitute(
        toolchain=json.dumps(str(toolchain_path)),
        marker=json.dumps(RESULT_MARKER),
        externals=json.dumps(externals.names),
        context=json.dumps(str(workspace.install_dir(package_name))),
        entry_chunk=ENTRY_CHUNK,
        entry=json.dumps(str(entry_point)),
        resolve_modules=json.dumps([str(workspace.node_modules(package_name)), "node_modules"]),
        fallback=json.dumps(stub_fallbacks()),
        browsers=json.dumps(browsers),
        runtime_chunk=json.dumps(RUNTIME_CHUNK),
        workers=json.dumps(workers),
    )


def parse_build_report(result: CommandResult) -> Optional[dict[str, Any]]:
    """The payload printed after the result marker, or None if there is none."""
    for line in reversed(result.stdout.splitlines()):
        if line.startswith(RESULT_MARKER):
            try:
                payload = json.loads(line[len(RESULT_MARKER) :])
            except json.JSONDecodeError:
                logger.warning("Unparsable build report from %s", result.args[:1])
                return None
            return payload if isinstance(payload, dict) else None
    return None


class BundleBuilder:
    """Builds one package per call with webpack driven from Node."""

    def __init__(
        self,
        workspace: Workspace,
        *,
        node_command: Optional[str] = None,
        toolchain_path: Optional[Path | str] = None,
        workers: Optional[int] = None,
        browsers: Optional[list[str]] = None,
        runner: CommandRunner = run_command,
        timeout: Optional[float] = None,
    ):
        self.workspace = workspace
        self.node_command = node_command or settings.node_command
        self.toolchain_path = Path(toolchain_path or settings.toolchain_path).resolve()
        self.workers = workers or settings.minify_worker_count
        self.browsers = browsers or settings.browser_targets_list
        self._runner = runner
        self.timeout = timeout if timeout is not None else settings.build_timeout_seconds

    async def build(self, package_name: str, externals: Externals) -> BuildOutput:
        """
        Bundle ``package_name`` leaving ``externals`` out.

        The generated entry file is removed whether or not the build succeeds.

        Raises:
            EntryPointError: If the entry file cannot be written
            BuildError: On compile errors, missing statistics, or a failed run
        """
        entry_point = await self.workspace.write_entry_point(package_name)
        try:
            return await self._compile(package_name, entry_point, externals)
        finally:
            await self.workspace.remove_entry_point(entry_point)

    async def _compile(self, package_name: str, entry_point: Path, externals: Externals) -> BuildOutput:
        script = render_build_script(
            package_name=package_name,
            entry_point=entry_point,
            workspace=self.workspace,
            externals=externals,
            toolchain_path=self.toolchain_path,
            workers=self.workers,
            browsers=self.browsers,
        )

        logger.debug("build start %s", package_name)
        result = await self._runner(
            [self.node_command, "-"],
            cwd=self.workspace.install_dir(package_name),
            timeout=self.timeout,
            input=script.encode("utf-8"),
        )
        logger.debug("build end %s (exit %s)", package_name, result.returncode)

        if result.timed_out:
            raise BuildError(result.output, f"BuildError: {package_name}: bundler timed out")

        report = parse_build_report(result)
        stats = report.get("stats") if report else None
        if not isinstance(stats, dict):
            detail = (report or {}).get("error") or result.stderr.strip() or result.output
            raise BuildError(detail or f"node exited with status {result.returncode}")

        errors = stats.get("errors") or []
        if errors:
            logger.warning("build failed %s with %d error(s)", package_name, len(errors))
            raise BuildError(errors)
        if not result.ok:
            raise BuildError(result.output or f"node exited with status {result.returncode}")

        store = MemoryOutputStore()
        try:
            store.load_encoded(report.get("files") or {})
        except ValueError as exc:
            raise BuildError(str(exc)) from exc
        assets = [BundleAsset.model_validate(asset) for asset in stats.get("assets") or []]
        return BuildOutput(assets=assets, store=store, warnings=stats.get("warnings") or [])
