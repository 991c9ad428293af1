"""Short-code allocation, resolution and access counting for a link shortener."""
