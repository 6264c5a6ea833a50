"""Test configuration."""

from pathlib import Path
import os

os.environ["ENVIRONMENT"] = "testing"

# Guardrail: never measure into the real scratch workspace from tests.
repo_root = Path(__file__).resolve().parents[2]
test_root = repo_root / "scratch" / "tests"
os.environ.setdefault("WORKSPACE_PATH", str(test_root / "workspace"))
