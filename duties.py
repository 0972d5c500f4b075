"""Project tasks."""

from __future__ import annotations

from pathlib import Path

from duty import duty  # pyright: ignore[reportMissingImports]


PACKAGE_NAME = "workspace_sync"


@duty(capture=False)
def test(ctx, *args: str):
    """Run tests."""
    args_str = " " + " ".join(args) if args else ""
    ctx.run(f"uv run pytest{args_str}")


@duty(capture=False)
def test_local(ctx):
    """Run only the local workspace and watcher tests."""
    ctx.run("uv run pytest tests/test_local.py")


@duty(capture=False)
def clean(ctx):
    """Clean all files from the Git directory except checked-in files."""
    ctx.run("git clean -dfX")


@duty(capture=False)
def update(ctx):
    """Update all environment packages."""
    ctx.run("uv lock --upgrade")
    ctx.run("uv sync --all-extras")


def _run_linters(ctx, filepath: str | None, *, fix: bool) -> None:
    if filepath is None:
        ruff_target, mypy_target = ".", f"src/{PACKAGE_NAME}"
    else:
        # mypy only checks package sources
        in_package = Path(filepath).is_relative_to("src")
        ruff_target, mypy_target = filepath, filepath if in_package else ""
    if fix:
        ctx.run(f"uv run ruff check --fix --unsafe-fixes {ruff_target}")
        ctx.run(f"uv run ruff format {ruff_target}")
    else:
        ctx.run(f"uv run ruff check {ruff_target}")
        ctx.run(f"uv run ruff format --check {ruff_target}")
    if mypy_target:
        ctx.run(f"uv run mypy {mypy_target}")


@duty(capture=False)
def lint(ctx, filepath: str | None = None):  # noqa: D417
    """Lint the code and fix issues if possible.

    Args:
        filepath: Optional path to a specific file, defaults to the whole project.
    """
    _run_linters(ctx, filepath, fix=True)


@duty(capture=False)
def lint_check(ctx, filepath: str | None = None):  # noqa: D417
    """Lint the code without fixing anything.

    Args:
        filepath: Optional path to a specific file, defaults to the whole project.
    """
    _run_linters(ctx, filepath, fix=False)
