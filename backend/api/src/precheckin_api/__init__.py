"""REST API for pre check-in submissions."""
