# type: ignore
from invoke import task


@task
def venv(ctx):
    """Create the development environment with uv."""
    ctx.run("uv sync --extra test --extra dev")


@task
def lint(ctx):
    """
    Static checks: ruff for style and import order, mypy for types.
    """
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def test(ctx):
    """
    Run tests with coverage information.
    """
    ctx.run("pytest --cov=tasmoscan --cov-report=term-missing", pty=True)


@task
def mock(ctx, port=8080, firmware="9.1.0", variant="tasmota"):
    """Start a mock Tasmota device for manual testing."""
    ctx.run(
        f"tasmoscan mock --port {port} --firmware {firmware} --variant {variant}",
        pty=True,
    )


@task
def build_package(ctx):
    """
    Build sdist and wheel with uv.
    """
    ctx.run("rm -rf dist")
    ctx.run("uv build")
