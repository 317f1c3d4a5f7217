"""Language model clients used for answer generation."""
