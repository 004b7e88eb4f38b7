"""Core domain models and helpers for Scribe."""
