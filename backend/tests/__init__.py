"""
Test Suite

Structure:
    tests/
    ├── conftest.py         # Pytest fixtures
    ├── factories.py        # Workflow / graph builders
    ├── fakes.py            # In-memory repositories
    ├── unit/               # Engine and service tests
    └── integration/        # API endpoint tests

To run tests:
    pytest tests/
    pytest tests/unit/
    pytest tests/integration/
"""
