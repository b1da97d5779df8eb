"""HTTP API for InspectFlow."""
