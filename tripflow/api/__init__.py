"""HTTP gateway routes."""
