from __future__ import annotations


def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "solver: tests that need OR-Tools installed")
    config.addinivalue_line("markers", "api: tests that exercise the HTTP layer")
