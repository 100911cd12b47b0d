"""Configuration and clock helpers for eventmatcher."""
