"""Pytest configuration and shared fixtures."""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dwarf_to_json.infrastructure.config.defaults import DEFAULT_CONFIG, ENV_PREFIX
from dwarf_to_json.infrastructure.logging import LoggerSetup

from tests.wasm_fixtures import (
    CODE_SECTION_OFFSET,
    ScopeScenario,
    module_with_code_offset,
    minimal_sections,
    scope_sections,
)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def minimal_module() -> bytes:
    """Module with one live function whose rows are (10, 5, 3) and (20, 6, 1)."""
    return module_with_code_offset(CODE_SECTION_OFFSET, minimal_sections())


@pytest.fixture
def scope_scenario() -> ScopeScenario:
    return scope_sections()


@pytest.fixture
def scope_module(scope_scenario: ScopeScenario) -> bytes:
    """Module whose scope tree holds live, dead and inlined functions."""
    return module_with_code_offset(CODE_SECTION_OFFSET, scope_scenario.sections)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Remove converter settings from the environment and run from an empty
    directory so no .env file is picked up.
    """
    for key in DEFAULT_CONFIG:
        monkeypatch.delenv(f"{ENV_PREFIX}{key}", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fresh_logging():
    """Allow LoggerSetup to initialize again and restore root handlers after."""
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    LoggerSetup.reset()
    yield
    for handler in root_logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)
    LoggerSetup.reset()
