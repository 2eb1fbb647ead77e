#!/usr/bin/env python3
"""
Run the bibnames CI checks locally using the ACTIVE virtual environment.

Order:
  1) uv sync --all-extras [--frozen if uv.lock exists]  (ACTIVE venv)
  2) black --check on the package, the tests and the scripts (line length 120)
  3) mypy on the package and the scripts
  4) pytest tests/ with coverage of bibnames and PYTHONPATH=<repo root>

All commands run from the repo root (the directory holding pyproject.toml).
"""

import os
import sys
import shutil
import subprocess
from pathlib import Path

PACKAGE = "bibnames"
BLACK_VERSION = "24.8.0"
LINE_LENGTH = "120"
COVERAGE_FLOOR = "90"


def uv_exe() -> list[str]:
    uv_path = shutil.which("uv")
    if uv_path:
        return [uv_path]
    print("ERROR: 'uv' not found. Install uv first.", file=sys.stderr)
    sys.exit(2)


def repo_root() -> Path:
    here = Path(__file__).resolve().parent
    for d in [here] + list(here.parents):
        if (d / "pyproject.toml").exists():
            return d
    return here


REPO = repo_root()


def run(cmd: list[str], *, env: dict[str, str] | None = None) -> None:
    print(">>>", " ".join(cmd))
    subprocess.run(cmd, check=True, cwd=str(REPO), env=env)


def script_paths() -> list[str]:
    return [str(p.relative_to(REPO)) for p in sorted((REPO / "scripts").glob("*.py"))]


def run_black_on(paths: list[str]) -> None:
    uvx_path = shutil.which("uvx")
    if uvx_path:
        run([uvx_path, "--from", f"black=={BLACK_VERSION}", "black", *paths, "--check", "--line-length", LINE_LENGTH])
        return
    run(uv_exe() + ["run", "--active", "black", *paths, "--check", "--line-length", LINE_LENGTH])


def main() -> None:
    # 1) Sync deps (including the dev extra) into the ACTIVE venv
    sync_args = ["sync", "--active", "--all-extras"]
    if (REPO / "uv.lock").exists():
        sync_args.append("--frozen")
    run(uv_exe() + sync_args)

    # 2) Formatting
    run_black_on([PACKAGE, "tests", *script_paths()])

    # 3) Type checking
    run(uv_exe() + ["run", "--active", "mypy", PACKAGE, *script_paths()])

    # 4) Tests with coverage
    env = os.environ.copy()
    env["PYTHONPATH"] = str(REPO)
    run(
        uv_exe()
        + [
            "run",
            "--active",
            "pytest",
            "tests/",
            f"--cov={PACKAGE}",
            "--cov-report=term-missing",
            f"--cov-fail-under={COVERAGE_FLOOR}",
        ],
        env=env,
    )

    print("\nALL CHECKS PASSED")


if __name__ == "__main__":
    try:
        main()
    except subprocess.CalledProcessError as e:
        print(f"\nCommand failed with exit code {e.returncode}", file=sys.stderr)
        sys.exit(e.returncode)
