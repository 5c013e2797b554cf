"""Raw publication record handling."""
