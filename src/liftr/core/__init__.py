"""Core scheduling engine: models, generation, evaluation, adjustment."""
