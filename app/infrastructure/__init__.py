"""Infrastructure: persistence, messaging, and runtime services."""
