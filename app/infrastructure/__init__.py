"""Infrastructure adapters: persistence, messaging, identity."""
