"""Core: configuration, errors, plugins and the authorization engine."""
