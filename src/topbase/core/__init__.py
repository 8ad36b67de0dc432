"""Configuration, logging, errors and result types."""
