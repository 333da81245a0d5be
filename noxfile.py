"""nox configuration for memberof."""

import nox

# Default sessions.
nox.options.sessions = ["typing", "test-coverage", "coverage-report"]

# Other nox defaults.
nox.options.reuse_existing_virtualenvs = True


@nox.session(name="coverage-report")
def coverage_report(session: nox.Session) -> None:
    """Generate a code coverage report from the test suite."""
    session.install("coverage[toml]")
    session.run("coverage", "combine")
    session.run("coverage", "report", *session.posargs)


@nox.session
def test(session: nox.Session) -> None:
    """Run the test suite."""
    session.install("-e", ".[dev]")
    session.run("pytest", *session.posargs)


@nox.session(name="test-coverage")
def test_coverage(session: nox.Session) -> None:
    """Run the test suite with coverage."""
    session.install("-e", ".[dev]")
    session.run("coverage", "run", "-m", "pytest", *session.posargs)


@nox.session
def typing(session: nox.Session) -> None:
    """Run mypy."""
    session.install("-e", ".[dev,typing]")
    session.run("mypy", *session.posargs, "noxfile.py", "src", "tests")
