"""Application configuration and credential stores."""
