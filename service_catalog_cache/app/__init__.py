"""Media catalog cache layer."""
