from datetime import date, datetime, timedelta
from decimal import Decimal

from src.extensions import db


def test_dashboard_stats_empty(reports):
    stats = reports.get_dashboard_stats()
    assert stats == {
        "total_medicines": 0,
        "low_stock_medicines": 0,
        "expired_medicines": 0,
        "total_patients": 0,
        "today_sales": Decimal("0.00"),
        "today_transactions": 0,
        "total_revenue": Decimal("0.00"),
    }


def test_dashboard_stats_counts_completed_sales_only(make_medicine, make_patient, sales, reports):
    today = date.today()
    a = make_medicine(name="A", price="10.00", stock=50, minimum_stock=5)
    make_medicine(name="B", price="5.00", stock=2, minimum_stock=5, expiry_date=today - timedelta(days=1))
    make_patient()

    kept = sales.create_sale([{"medicine_id": a.id, "quantity": 2}], "CASH", 20)
    cancelled = sales.create_sale([{"medicine_id": a.id, "quantity": 1}], "CASH", 10)
    older = sales.create_sale([{"medicine_id": a.id, "quantity": 3}], "CASH", 30)
    sales.cancel_sale(cancelled.id)
    older.transaction_date = datetime.now() - timedelta(days=40)
    db.session.commit()

    stats = reports.get_dashboard_stats(today=today)

    assert stats["total_medicines"] == 2
    assert stats["low_stock_medicines"] == 1
    assert stats["expired_medicines"] == 1
    assert stats["total_patients"] == 1
    assert stats["today_sales"] == Decimal("20.00")
    assert stats["today_transactions"] == 1
    assert stats["total_revenue"] == Decimal("50.00")
    assert reports.get_today_revenue(today=today) == Decimal("20.00")
    assert kept.status.value == "COMPLETED"


def test_monthly_revenue(make_medicine, sales, reports):
    medicine = make_medicine(price="4.00", stock=100)
    in_month = sales.create_sale([{"medicine_id": medicine.id, "quantity": 1}], "CASH", 4)
    last_day = sales.create_sale([{"medicine_id": medicine.id, "quantity": 2}], "CASH", 8)
    next_month = sales.create_sale([{"medicine_id": medicine.id, "quantity": 5}], "CASH", 20)

    in_month.transaction_date = datetime(2026, 12, 1, 0, 0, 0)
    last_day.transaction_date = datetime(2026, 12, 31, 23, 59, 59)
    next_month.transaction_date = datetime(2027, 1, 1, 0, 0, 0)
    db.session.commit()

    assert reports.get_monthly_revenue(today=date(2026, 12, 15)) == Decimal("12.00")
    assert reports.get_monthly_revenue(today=date(2027, 1, 2)) == Decimal("20.00")


def test_sales_report(make_medicine, make_patient, sales, reports):
    medicine = make_medicine(price="7.50", stock=100)
    patient = make_patient(name="Wati")
    with_patient = sales.create_sale([{"medicine_id": medicine.id, "quantity": 2}], "CASH", 20, patient_id=patient.id)
    walk_in = sales.create_sale([{"medicine_id": medicine.id, "quantity": 1}], "CASH", 10)
    outside = sales.create_sale([{"medicine_id": medicine.id, "quantity": 1}], "CASH", 10)

    with_patient.transaction_date = datetime(2026, 5, 1, 8, 0)
    walk_in.transaction_date = datetime(2026, 5, 3, 23, 30)
    outside.transaction_date = datetime(2026, 5, 4, 0, 0, 1)
    db.session.commit()

    report = reports.generate_sales_report(date(2026, 5, 1), date(2026, 5, 3))

    assert report["period"] == "2026-05-01 to 2026-05-03"
    assert report["total_transactions"] == 2
    assert report["total_revenue"] == Decimal("22.50")
    assert [(t["id"], t["patient_name"]) for t in report["transactions"]] == [
        (walk_in.id, None),
        (with_patient.id, "Wati"),
    ]


def test_stock_report(make_medicine, reports):
    today = date(2026, 10, 18)
    make_medicine(name="Fresh", stock=100, minimum_stock=10)
    make_medicine(name="Short", stock=3, minimum_stock=10)
    make_medicine(name="Expired", stock=30, minimum_stock=10, expiry_date=date(2026, 1, 1))

    report = reports.generate_stock_report(date(2026, 10, 1), date(2026, 10, 31), today=today)

    assert report["period"] == "2026-10-01 to 2026-10-31"
    assert report["total_medicines"] == 3
    assert report["low_stock_count"] == 1
    assert report["expired_count"] == 1
    assert [m["name"] for m in report["medicines"]] == ["Expired", "Fresh", "Short"]
