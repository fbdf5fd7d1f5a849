"""Integration tests for mealplanner.

These tests require a PostgreSQL database reachable at TEST_DATABASE_URL.

Run with: pytest tests/integration/ -v -m integration
Skip with: pytest -m "not integration"
"""
