"""Platform service clients."""
