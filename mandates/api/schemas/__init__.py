"""Request and response schemas for the decision register API."""
