"""Request and response schemas for the InspectFlow API."""
