"""Request signature verification."""
