"""Command-line interface: gauntlet files | run | health."""
