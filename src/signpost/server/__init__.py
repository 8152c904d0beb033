"""ASGI plumbing — request handling, response sending, listeners."""
