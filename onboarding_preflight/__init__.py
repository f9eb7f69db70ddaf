"""Environment-compatibility checklist run before platform onboarding."""
