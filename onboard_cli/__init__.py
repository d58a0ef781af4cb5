"""Command-line surface for the onboarding agent: settings and the interactive shell."""
