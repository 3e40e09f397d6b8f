"""HTTP surface of the thematic map viewer."""
