"""Role-based store rating API."""
