"""Page tests driven by NiceGUI's simulated user."""
