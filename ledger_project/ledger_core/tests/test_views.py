import json

import pytest
from django.urls import reverse

from ledger_core.models import Account, Company, EntityMembership, LedgerRecord
from ledger_core.services import create_journal_entry, seed_chart_of_accounts


@pytest.fixture
def company(db):
    company = Company.objects.create(name="Web Co")
    seed_chart_of_accounts(company)
    return company


@pytest.fixture
def api(client, django_user_model, company):
    user = django_user_model.objects.create_user(username="clerk", password="pw", default_company=company)
    EntityMembership.objects.create(user=user, company=company)
    client.force_login(user)
    return client


def account_id(company, code):
    return Account.objects.get(company=company, code=code).pk


def entry_payload(company, debit="100.00", credit="100.00"):
    return {
        "date": "2026-01-05",
        "reference": "WEB-1",
        "description": "Owner investment",
        "lines": [
            {"accountId": account_id(company, "1010"), "debit": debit, "credit": "0"},
            {"account_id": account_id(company, "3000"), "debit": "0", "credit": credit},
        ],
    }


def post_json(client, url, payload=None):
    return client.post(url, data=json.dumps(payload or {}), content_type="application/json")


def create_entry(api, company, **kwargs):
    response = post_json(api, reverse("journal-entries"), entry_payload(company, **kwargs))
    return response, response.json()


def test_create_entry_returns_201_envelope(api, company):
    response, body = create_entry(api, company)

    assert response.status_code == 201
    assert body["success"] is True
    assert body["data"]["entry_number"] == "JE-2026-001"
    assert body["data"]["status"] == "draft"
    assert body["data"]["total_debit"] == "100.00"
    assert len(body["data"]["lines"]) == 2


def test_unbalanced_entry_returns_400(api, company):
    response, body = create_entry(api, company, credit="90.00")

    assert response.status_code == 400
    assert body["success"] is False
    assert "not balanced" in body["message"]


def test_invalid_json_returns_400(api):
    response = api.post(reverse("journal-entries"), data="{nope", content_type="application/json")
    assert response.status_code == 400


def test_post_void_and_ledger_rows(api, company):
    _, body = create_entry(api, company)
    entry_id = body["data"]["id"]

    response = post_json(api, reverse("journal-entry-post", args=[entry_id]))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "posted"

    # posting twice is a lifecycle conflict
    assert post_json(api, reverse("journal-entry-post", args=[entry_id])).status_code == 409

    rows = api.get(reverse("journal-entry-ledger", args=[entry_id])).json()["data"]
    assert [row["running_balance"] for row in rows] == ["100.00", "100.00"]

    response = post_json(api, reverse("journal-entry-void", args=[entry_id]))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "void"
    assert LedgerRecord.objects.filter(journal_entry_id=entry_id, is_reversal=True).count() == 2


def test_update_and_delete_draft(api, company):
    _, body = create_entry(api, company)
    url = reverse("journal-entry-detail", args=[body["data"]["id"]])

    response = api.patch(url, data=json.dumps({"reference": "WEB-2"}), content_type="application/json")
    assert response.status_code == 200
    assert response.json()["data"]["reference"] == "WEB-2"

    assert api.delete(url).status_code == 200
    assert api.get(url).status_code == 404


def test_entry_of_another_company_is_not_found(api, company):
    other = Company.objects.create(name="Other")
    seed_chart_of_accounts(other)
    foreign = create_journal_entry(
        other,
        entry_date="2026-01-05",
        lines=[
            {"account_id": account_id(other, "1010"), "debit": "5", "credit": "0"},
            {"account_id": account_id(other, "3000"), "debit": "0", "credit": "5"},
        ],
    )
    assert api.get(reverse("journal-entry-detail", args=[foreign.pk])).status_code == 404


def test_anonymous_request_has_no_company(client, db):
    response = client.get(reverse("journal-entries"))
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_list_filters_by_status_and_date_range(api, company):
    _, body = create_entry(api, company)
    post_json(api, reverse("journal-entry-post", args=[body["data"]["id"]]))
    create_entry(api, company)

    assert len(api.get(reverse("journal-entries"), {"status": "posted"}).json()["data"]) == 1
    assert len(api.get(reverse("journal-entries-status", args=["draft"])).json()["data"]) == 1
    assert len(api.get(reverse("journal-entries-type", args=["manual"])).json()["data"]) == 2
    in_range = api.get(reverse("journal-entries-date-range"), {"startDate": "2026-01-01", "endDate": "2026-01-31"})
    assert len(in_range.json()["data"]) == 2
    assert api.get(reverse("journal-entries-status", args=["bogus"])).status_code == 400


def test_reports(api, company):
    _, body = create_entry(api, company)
    post_json(api, reverse("journal-entry-post", args=[body["data"]["id"]]))

    sheet = api.get(reverse("report-balance-sheet"), {"asOfDate": "2026-01-31"}).json()["data"]
    assert sheet["balanced"] is True
    assert sheet["assets"]["total"] == "100.00"

    trial = api.get(reverse("report-trial-balance"), {"as_of_date": "2026-01-31"}).json()["data"]
    assert trial["totals"]["balanced"] is True

    income = api.get(reverse("report-income-statement"), {"startDate": "2026-01-01", "endDate": "2026-01-31"})
    assert income.status_code == 200
    assert income.json()["data"]["summary"]["net_income"] == "0.00"

    cash_flow = api.get(reverse("report-cash-flow"), {"startDate": "2026-01-01", "endDate": "2026-01-31"})
    assert cash_flow.json()["data"]["summary"]["reconciled"] is True

    assert api.get(reverse("report-income-statement")).status_code == 400
    assert api.get(reverse("report-ar-aging")).status_code == 200
    assert api.get(reverse("report-ap-aging")).status_code == 200


def test_ledger_views(api, company):
    _, body = create_entry(api, company)
    post_json(api, reverse("journal-entry-post", args=[body["data"]["id"]]))

    general = api.get(reverse("general-ledger")).json()["data"]
    assert [group["code"] for group in general] == ["1010", "3000"]

    cash = api.get(reverse("account-ledger", args=[account_id(company, "1010")])).json()["data"]
    assert cash["closing_balance"] == "100.00"
    assert api.get(reverse("account-ledger", args=[999999])).status_code == 404
