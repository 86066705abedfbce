"""
Integration tests for the D2 event listener.

These tests run the full pipeline (bus, dispatcher, real handlers) against
an in-memory contract binding and in-memory repositories.

Run with:
    pytest tests/integration/ -v -m integration

Skip with:
    pytest -m "not integration"
"""
