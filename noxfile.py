import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with all test extras into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--all-extras",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run the fast layers only (no HTTP, no SQL, no threads)."""
    _install(session)
    session.run(
        "pytest",
        "tests/ordering/domain/",
        "-m",
        "not slow",
    )


@nox.session(python=PYTHON_VERSIONS[-1])
def loadtest_smoke(session: nox.Session) -> None:
    """Import the Locust scenarios to catch broken load test wiring."""
    _install(session)
    session.run("locust", "-f", "loadtests/locustfile.py", "--list")
