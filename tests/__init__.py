"""Test suite for dwarf-to-json.

Test Structure:
- core/: Section walking, line table, scope tree and source map encoding
- infrastructure/: Configuration and logging
- test_main.py: Command line behaviour

Synthetic modules come from wasm_fixtures.py; no binary fixtures are needed.

Run tests with pytest:
    pytest                    # Run all tests
    pytest -m unit            # Run unit tests only
"""
