from datetime import datetime, timezone
from decimal import Decimal

from ryd.models.finance import FinancialTransaction
from ryd.services.finance import compute_finance_stats, month_bounds, percentage_change


def _record(db_session, creator, kind, amount, when, description="Entry"):
    db_session.add(
        FinancialTransaction(
            type=kind,
            amount=Decimal(amount),
            date=when,
            description=description,
            created_by_id=creator.id,
        )
    )
    db_session.commit()


def test_admin_records_transaction(client, authorize, admin_user):
    authorize(admin_user)

    response = client.post(
        "/api/finance/transactions",
        json={
            "type": "DONATION",
            "amount": "250.50",
            "date": "2026-04-12T10:00:00Z",
            "description": "Sunday collection",
            "category": "Offerings",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert Decimal(body["amount"]) == Decimal("250.50")
    assert body["type"] == "DONATION"
    assert body["created_by"]["id"] == admin_user.id


def test_amount_must_be_positive(client, authorize, admin_user):
    authorize(admin_user)

    response = client.post(
        "/api/finance/transactions",
        json={"type": "EXPENSE", "amount": "0", "date": "2026-04-12T10:00:00Z", "description": "Nothing"},
    )

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "amount"


def test_staff_views_but_cannot_record(client, authorize, staff_user):
    authorize(staff_user)

    listing = client.get("/api/finance/transactions")
    created = client.post(
        "/api/finance/transactions",
        json={"type": "EXPENSE", "amount": "10", "date": "2026-04-12T10:00:00Z", "description": "Snacks"},
    )

    assert listing.status_code == 200
    assert created.status_code == 403


def test_volunteer_has_no_finance_access(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.get("/api/finance/transactions")

    assert response.status_code == 403


def test_list_filters_by_type_and_date(client, authorize, admin_user, db_session):
    _record(db_session, admin_user, "INCOME", "100.00", datetime(2026, 1, 15, tzinfo=timezone.utc), "January")
    _record(db_session, admin_user, "EXPENSE", "40.00", datetime(2026, 2, 10, tzinfo=timezone.utc), "February")
    _record(db_session, admin_user, "INCOME", "60.00", datetime(2026, 2, 20, tzinfo=timezone.utc), "Late Feb")
    authorize(admin_user)

    income = client.get("/api/finance/transactions", params={"type": "INCOME"})
    february = client.get(
        "/api/finance/transactions",
        params={"start_date": "2026-02-01T00:00:00Z", "end_date": "2026-02-28T23:59:59Z"},
    )

    assert [row["description"] for row in income.json()] == ["Late Feb", "January"]
    assert [row["description"] for row in february.json()] == ["Late Feb", "February"]


def test_update_and_delete_transaction(client, authorize, admin_user, db_session):
    _record(db_session, admin_user, "EXPENSE", "12.00", datetime(2026, 3, 3, tzinfo=timezone.utc), "Paper")
    transaction_id = db_session.query(FinancialTransaction).one().id
    authorize(admin_user)

    updated = client.patch(f"/api/finance/transactions/{transaction_id}", json={"amount": "15.25"})
    cleared = client.patch(f"/api/finance/transactions/{transaction_id}", json={"description": None})
    deleted = client.delete(f"/api/finance/transactions/{transaction_id}")
    missing = client.delete(f"/api/finance/transactions/{transaction_id}")

    assert updated.status_code == 200
    assert Decimal(updated.json()["amount"]) == Decimal("15.25")
    assert cleared.status_code == 400
    assert deleted.status_code == 204
    assert missing.status_code == 404


def test_month_bounds_wraps_year():
    previous, current = month_bounds(datetime(2026, 1, 20, 15, 30, tzinfo=timezone.utc))

    assert previous == datetime(2025, 12, 1, tzinfo=timezone.utc)
    assert current == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_percentage_change_rules():
    assert percentage_change(Decimal("0"), Decimal("0")) == 0.0
    assert percentage_change(Decimal("0"), Decimal("5")) == 100.0
    assert percentage_change(Decimal("200"), Decimal("150")) == -25.0
    assert percentage_change(Decimal("3"), Decimal("4")) == 33.3


def test_stats_compare_current_and_previous_month(db_session, admin_user):
    now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
    _record(db_session, admin_user, "INCOME", "100.00", datetime(2026, 2, 5, tzinfo=timezone.utc))
    # Last day of the previous month belongs to the previous month only.
    _record(db_session, admin_user, "INCOME", "100.00", datetime(2026, 2, 28, 18, 0, tzinfo=timezone.utc))
    _record(db_session, admin_user, "INCOME", "300.00", datetime(2026, 3, 1, tzinfo=timezone.utc))
    _record(db_session, admin_user, "DONATION", "50.00", datetime(2026, 3, 10, tzinfo=timezone.utc))
    _record(db_session, admin_user, "EXPENSE", "80.00", datetime(2026, 3, 20, tzinfo=timezone.utc))

    stats = compute_finance_stats(db_session, now=now)

    assert stats.total_income == Decimal("300.00")
    assert stats.income_change == 50.0
    assert stats.total_donations == Decimal("50.00")
    assert stats.donation_change == 100.0
    assert stats.total_expenses == Decimal("0")
    assert stats.expense_change == 0.0
    assert stats.period_start == datetime(2026, 3, 1, tzinfo=timezone.utc)


def test_stats_endpoint(client, authorize, staff_user):
    authorize(staff_user)

    response = client.get("/api/finance/stats")

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["total_income"]) == 0
    assert body["income_change"] == 0.0
