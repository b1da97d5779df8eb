"""Core domain logic for InspectFlow."""
