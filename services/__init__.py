"""Process-level services for the interviewer API."""
