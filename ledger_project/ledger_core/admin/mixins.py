class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.company (set by CurrentCompanyMiddleware)
    or falls back to request.user.default_company.
    """

    def _get_request_company(self, request):
        company = getattr(request, "company", None)
        if company is None:
            company = getattr(getattr(request, "user", None), "default_company", None)
        return company

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # superusers see every tenant
        if request.user.is_superuser:
            return qs
        company = self._get_request_company(request)
        if company is None:
            return qs.none()
        return qs.filter(company=company)

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """Restrict company-scoped dropdowns (company, account, customer ...) to the current company."""
        if not request.user.is_superuser:
            company = self._get_request_company(request)
            rel_model = db_field.related_model
            if db_field.name == "company":
                kwargs["queryset"] = (
                    rel_model.objects.filter(pk=company.pk) if company else rel_model.objects.none()
                )
            elif any(f.name == "company" for f in rel_model._meta.get_fields()):
                kwargs["queryset"] = (
                    rel_model.objects.filter(company=company) if company else rel_model.objects.none()
                )
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # objects are always owned by the admin's company (unless superuser)
        if not request.user.is_superuser:
            company = self._get_request_company(request)
            if company is not None:
                obj.company = company
        super().save_model(request, obj, form, change)
