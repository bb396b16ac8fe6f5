"""Static lookup tables shared by the matching engine."""
