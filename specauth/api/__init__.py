"""ASGI integration: operation matching, middleware and flow routes."""
