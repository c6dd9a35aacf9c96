"""
Services for the redirect pipeline and the dashboard.

Each service wraps one concern (alias lookup, visitor classification,
visit storage, analytics) and takes an AsyncSession or the collaborators
it needs, so endpoints stay thin and tests can swap parts out.
"""
