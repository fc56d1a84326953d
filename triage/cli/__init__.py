"""Command-line interface for the Issue Triage Engine."""
