"""Domain objects: payloads, contexts and messages."""
