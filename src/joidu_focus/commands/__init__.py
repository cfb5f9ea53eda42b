"""Command modules for the joidu CLI."""
