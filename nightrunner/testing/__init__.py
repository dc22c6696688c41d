"""Helpers for testing nightrunner and code built on it."""
