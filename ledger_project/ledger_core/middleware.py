from django.utils.deprecation import MiddlewareMixin

from .models import Company


class CurrentCompanyMiddleware(MiddlewareMixin):
    """Attach request.company for the logged-in user (None when anonymous)."""

    def process_request(self, request):
        request.company = None
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return

        # Default company fallback
        request.company = getattr(user, "default_company", None)

        # A company picked in the session wins, if the user is a member
        company_id = request.session.get("active_company_id")
        if company_id:
            request.company = Company.objects.filter(
                id=company_id,
                memberships__user=user,
                memberships__is_active=True,
            ).first()
