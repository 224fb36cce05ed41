"""CLI command modules registered on the shared typer app."""
