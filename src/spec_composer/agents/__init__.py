"""AG2 agents acting as completion collaborators."""
