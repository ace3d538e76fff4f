"""Test-runner invocations."""
