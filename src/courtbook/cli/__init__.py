"""CLI module for courtbook."""
