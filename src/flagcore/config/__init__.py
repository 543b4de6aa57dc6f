"""Configuration – env-driven settings for the flag manager."""
