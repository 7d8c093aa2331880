"""HTTP clients for the Slack Web API and response URLs."""
