"""Configuration, errors, logging and the database gateway."""
