"""HTTP blueprints: control-plane API and status endpoint."""
