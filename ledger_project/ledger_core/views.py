import json
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .exceptions import FailedPreconditionError
from .services import accounts, balances, journal, reports



# ----------------------------
# Response envelope: {"success", "data", "message"}
# ----------------------------
def ok(data=None, message=None, status=200):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return JsonResponse(body, status=status, encoder=DjangoJSONEncoder)


def fail(message, status):
    return JsonResponse({"success": False, "message": message}, status=status)


def _message(exc):
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    return str(exc)


def ledger_endpoint(view):
    """
    Company scoping plus error mapping:
    validation → 400, not found → 404, wrong lifecycle state → 409.
    """
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, "company", None) is None:
            return fail("No active company for this request", 403)
        try:
            return view(request, *args, **kwargs)
        except ValidationError as exc:
            return fail(_message(exc), 400)
        except ObjectDoesNotExist as exc:
            return fail(_message(exc), 404)
        except FailedPreconditionError as exc:
            return fail(_message(exc), 409)
    return wrapper


def _body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _param(request, *names):
    # accept both camelCase and snake_case query params
    for name in names:
        value = request.GET.get(name)
        if value:
            return value
    return None


def _lines(payload):
    lines = payload.get("lines")
    if lines is None:
        return None
    if not isinstance(lines, list):
        raise ValidationError("lines must be a list")
    return [
        {
            "account_id": line.get("account_id", line.get("accountId")),
            "debit": line.get("debit"),
            "credit": line.get("credit"),
            "description": line.get("description", ""),
        }
        for line in lines
        if isinstance(line, dict)
    ]


def serialize_entry(entry, include_lines=True):
    data = {
        "id": entry.pk,
        "entry_number": entry.entry_number,
        "date": entry.date,
        "reference": entry.reference,
        "description": entry.description,
        "entry_type": entry.entry_type,
        "status": entry.status,
        "total_debit": entry.total_debit,
        "total_credit": entry.total_credit,
        "source_type": entry.source_type or None,
        "source_id": entry.source_id,
        "created_by": entry.created_by_id,
        "posted_by": entry.posted_by_id,
        "posted_at": entry.posted_at,
        "voided_by": entry.voided_by_id,
        "voided_at": entry.voided_at,
        "created_at": entry.created_at,
    }
    if include_lines:
        data["lines"] = [
            {
                "id": line.pk,
                "line_no": line.line_no,
                "account_id": line.account_id,
                "account_code": line.account_code,
                "account_name": line.account_name,
                "description": line.description,
                "debit": line.debit,
                "credit": line.credit,
            }
            for line in entry.lines.all()
        ]
    return data


def _user(request):
    return request.user if request.user.is_authenticated else None


# ----------------------------
# Journal entries
# ----------------------------
@require_http_methods(["GET", "POST"])
@ledger_endpoint
def journal_entries(request):
    if request.method == "POST":
        payload = _body(request)
        entry = journal.create_journal_entry(
            request.company,
            entry_date=payload.get("date") or payload.get("entry_date"),
            lines=_lines(payload) or [],
            user=_user(request),
            reference=payload.get("reference", ""),
            description=payload.get("description", ""),
        )
        return ok(serialize_entry(entry), "Journal entry created", status=201)

    entries = journal.list_journal_entries(
        request.company,
        status=_param(request, "status"),
        entry_type=_param(request, "type", "entryType", "entry_type"),
        limit=_param(request, "limit") or 100,
        offset=_param(request, "offset") or 0,
    )
    return ok([serialize_entry(e, include_lines=False) for e in entries])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@ledger_endpoint
def journal_entry_detail(request, entry_id):
    entry = journal.get_journal_entry(request.company, entry_id)

    if request.method == "DELETE":
        journal.delete_journal_entry(entry, user=_user(request))
        return ok(None, "Journal entry deleted")

    if request.method in ("PUT", "PATCH"):
        payload = _body(request)
        patch = {k: payload[k] for k in journal.UPDATABLE_FIELDS if k in payload}
        if "entry_date" in payload and "date" not in patch:
            patch["date"] = payload["entry_date"]
        lines = _lines(payload)
        if lines is not None:
            patch["lines"] = lines
        entry = journal.update_journal_entry(entry, user=_user(request), **patch)
        return ok(serialize_entry(entry), "Journal entry updated")

    return ok(serialize_entry(entry))


@require_POST
@ledger_endpoint
def journal_entry_post(request, entry_id):
    entry = journal.get_journal_entry(request.company, entry_id)
    entry = journal.post_journal_entry(entry, user=_user(request))
    return ok(serialize_entry(entry), "Journal entry posted")


@require_POST
@ledger_endpoint
def journal_entry_void(request, entry_id):
    entry = journal.get_journal_entry(request.company, entry_id)
    entry = journal.void_journal_entry(entry, user=_user(request))
    return ok(serialize_entry(entry), "Journal entry voided")


@require_GET
@ledger_endpoint
def journal_entry_ledger(request, entry_id):
    entry = journal.get_journal_entry(request.company, entry_id)
    return ok(balances.get_entry_ledger_rows(entry))


@require_GET
@ledger_endpoint
def journal_entries_by_date_range(request):
    entries = journal.entries_by_date_range(
        request.company,
        _param(request, "startDate", "start_date"),
        _param(request, "endDate", "end_date"),
    )
    return ok([serialize_entry(e, include_lines=False) for e in entries])


@require_GET
@ledger_endpoint
def journal_entries_by_type(request, entry_type):
    entries = journal.entries_by_type(request.company, entry_type)
    return ok([serialize_entry(e, include_lines=False) for e in entries])


@require_GET
@ledger_endpoint
def journal_entries_by_status(request, status):
    entries = journal.entries_by_status(request.company, status)
    return ok([serialize_entry(e, include_lines=False) for e in entries])


# ----------------------------
# Ledger
# ----------------------------
@require_GET
@ledger_endpoint
def general_ledger(request):
    return ok(balances.get_general_ledger(
        request.company,
        journal.to_date(_param(request, "startDate", "start_date")),
        journal.to_date(_param(request, "endDate", "end_date")),
    ))


@require_GET
@ledger_endpoint
def account_ledger(request, account_id):
    account = accounts.get_account(request.company, account_id)
    data = balances.get_account_ledger(
        account,
        journal.to_date(_param(request, "startDate", "start_date")),
        journal.to_date(_param(request, "endDate", "end_date")),
    )
    data["balance"] = balances.get_account_balance(
        account, journal.to_date(_param(request, "asOfDate", "as_of_date")))["balance"]
    return ok(data)


# ----------------------------
# Reports
# ----------------------------
@require_GET
@ledger_endpoint
def balance_sheet(request):
    return ok(reports.generate_balance_sheet(request.company, _param(request, "asOfDate", "as_of_date")))


@require_GET
@ledger_endpoint
def income_statement(request):
    return ok(reports.generate_income_statement(
        request.company,
        _param(request, "startDate", "start_date"),
        _param(request, "endDate", "end_date"),
    ))


@require_GET
@ledger_endpoint
def cash_flow_statement(request):
    return ok(reports.generate_cash_flow_statement(
        request.company,
        _param(request, "startDate", "start_date"),
        _param(request, "endDate", "end_date"),
    ))


@require_GET
@ledger_endpoint
def trial_balance(request):
    return ok(reports.generate_trial_balance(request.company, _param(request, "asOfDate", "as_of_date")))


@require_GET
@ledger_endpoint
def ar_aging(request):
    return ok(reports.generate_ar_aging_report(request.company, _param(request, "asOfDate", "as_of_date")))


@require_GET
@ledger_endpoint
def ap_aging(request):
    return ok(reports.generate_ap_aging_report(request.company, _param(request, "asOfDate", "as_of_date")))
