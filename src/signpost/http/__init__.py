"""HTTP primitives — immutable Request, chainable Response, Headers."""
