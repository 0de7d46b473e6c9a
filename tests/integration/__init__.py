"""Integration tests for task-relay.

These tests run whole task graphs through the local trigger host against
the in-memory and file backends. No external services are required.

Run with: pytest tests/integration/ -v -m integration
"""
