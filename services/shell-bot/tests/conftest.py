"""Shared test configuration for shell-bot tests.

Sets required environment variables before any module that uses
pydantic-settings gets imported (e.g. main.py imports config.settings
at module level), and provides factories for the engine objects.
"""

import os

# Must be set before any shell_bot module that touches settings.
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")

import pytest

from shell_bot.driver import SessionDriver
from shell_bot.executor import CommandExecutor
from shell_bot.resolver import DirectoryResolver
from shell_bot.session_store import SessionStore


def build_driver(**limits) -> SessionDriver:
    """Build a driver wired to real subprocesses."""
    resolver = DirectoryResolver()
    return SessionDriver(
        store=SessionStore(),
        executor=CommandExecutor(resolver),
        resolver=resolver,
        **limits,
    )


@pytest.fixture
def driver() -> SessionDriver:
    return build_driver()


@pytest.fixture
def make_driver():
    """Factory fixture for drivers with custom output limits."""
    return build_driver
