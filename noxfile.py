"""
Nox configuration for formatting, type checking and testing.
"""

import os
import nox

PYTHON_ALL_VERSIONS = ["3.10", "3.11", "3.12", "3.13"]
PYTHON_MODULES = ["pdfcolorspace", "tools", "tests", "noxfile.py"]


@nox.session(reuse_venv=True)
def format(session):
    """Run Ruff for linting & formatting."""
    session.install("ruff")

    if os.getenv("CI"):
        # CI: check only, no auto-fix
        session.run("ruff", "check", *PYTHON_MODULES)
        session.run("ruff", "format", "--check", *PYTHON_MODULES)
    else:
        # Local development: apply fixes
        session.run("ruff", "check", "--fix", *PYTHON_MODULES)
        session.run("ruff", "format", *PYTHON_MODULES)


@nox.session(reuse_venv=True)
def types(session):
    """Run static type checking."""
    session.install("mypy")
    session.install("-e", ".")
    session.run(
        "mypy",
        "--show-error-codes",
        *PYTHON_MODULES,
    )


@nox.session(python=PYTHON_ALL_VERSIONS)
def tests(session):
    """Run the test suite across multiple Python versions."""
    session.install("pip>=21")
    session.install("-e", ".[dev]")
    session.run("pytest")
