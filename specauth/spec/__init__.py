"""Bundled specification fragments."""
