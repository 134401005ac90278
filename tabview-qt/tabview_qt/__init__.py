"""Qt models for the tabular view engine."""
