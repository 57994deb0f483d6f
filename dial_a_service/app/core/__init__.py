"""Platform services shared by the whole application."""
