"""Invoke tasks for local development of the gallery backend.

Tasks shell out to the `uv` CLI so environment sync, testing, linting, and
running the server go through the same toolchain.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"


def _run_uv(ctx: Context, args: Sequence[str], *, echo: bool = True, dry_run: bool = False) -> None:
    """Execute a uv command with consistent quoting.

    Args:
        ctx: Invoke execution context.
        args: Arguments appended after the `uv` executable.
        echo: Whether to echo the command before running it.
        dry_run: When True, print the command without executing it.
    """
    command = shlex.join(("uv", *args))
    if dry_run:
        print(f"[dry-run] {command}")
        return
    ctx.run(command, echo=echo, pty=True)


@task
def sync(ctx: Context, dev: bool = True) -> None:
    """Synchronize the virtual environment, including dev extras by default."""
    args = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _run_uv(ctx, args)


@task(help={"clean": "Remove existing artifacts from dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build source and wheel distributions in `dist/`."""
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _run_uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite."""
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    if path:
        args.append(path)
    _run_uv(ctx, args)


@task(help={"fix": "Apply auto-fixes where possible (ruff --fix)."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Run Ruff format checks and lint rules."""
    _run_uv(ctx, ["run", "ruff", "format", "--check", "src", "tests"])
    args: list[str] = ["run", "ruff", "check", "src", "tests"]
    if fix:
        args.append("--fix")
    _run_uv(ctx, args)


@task(help={"port": "Port to listen on.", "debug": "Enable Flask debug mode."})
def serve(ctx: Context, port: int = 0, debug: bool = False) -> None:
    """Run the gallery HTTP endpoints from the current site root."""
    args = ["run", "dategallery", "serve"]
    if port:
        args.extend(["--port", str(port)])
    if debug:
        args.append("--debug")
    _run_uv(ctx, args)


@task
def reconcile(ctx: Context) -> None:
    """Rebuild the folder index after date folders were changed by hand."""
    _run_uv(ctx, ["run", "dategallery", "reconcile"])


@task
def ci(ctx: Context) -> None:
    """Replicate the CI workflow locally."""
    ctx.invoke(lint)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, serve, reconcile, ci)
