def can_mutate(request):
    """The single write gate for the research board: logged-in staff only."""
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and user.is_staff)
