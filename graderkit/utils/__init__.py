"""Utility helpers shared across the runtime, sandbox and checks."""
