"""Platform HTTP clients."""
