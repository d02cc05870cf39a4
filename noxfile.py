"""Nox sessions for the package verifier."""

import nox

nox.options.sessions = ["tests", "lint"]
nox.options.reuse_existing_virtualenvs = True

PYTHON_VERSIONS = ["3.11", "3.12"]
COVERAGE_THRESHOLD = "85"


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    """Run the offline test suite with coverage."""
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        "--cov=package_verifier",
        "--cov-branch",
        "--cov-report=term-missing",
        "--cov-report=xml:coverage.xml",
        f"--cov-fail-under={COVERAGE_THRESHOLD}",
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS[0])
def lint(session):
    """Check style with ruff."""
    session.install("ruff>=0.1.0")
    session.run("ruff", "check", "package_verifier", "scripts", "tests")
    session.run("ruff", "format", "--check", "package_verifier", "scripts", "tests")


@nox.session(python=PYTHON_VERSIONS[0], name="dry-sweep")
def dry_sweep(session):
    """Sweep the built-in catalog against the live registries without storing."""
    session.install("-e", ".")
    session.run(
        "python",
        "-m",
        "package_verifier",
        "sweep",
        "--no-store",
        *session.posargs,
        env={"DDB_TABLE_NAME": "", "LOG_LEVEL": "INFO"},
    )
