"""HTTP middleware for the payments API."""
