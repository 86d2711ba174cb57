"""HTTP surface of the interviewer service."""
