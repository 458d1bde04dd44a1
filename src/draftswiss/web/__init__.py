"""JSON API for running a tournament."""
