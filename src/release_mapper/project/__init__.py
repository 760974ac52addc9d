"""Project descriptor handling."""
