"""Lambda entry points for the email gateway."""
