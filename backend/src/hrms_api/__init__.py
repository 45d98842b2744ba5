"""HR records and onboarding workflow backend."""
