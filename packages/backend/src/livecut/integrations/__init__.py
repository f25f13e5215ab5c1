"""Third-party service adapters (streaming provider)."""
