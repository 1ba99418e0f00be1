from datetime import date, datetime, time
from decimal import Decimal
from types import SimpleNamespace

from profislots.schemas import DashboardStats
from profislots.views import dashboard_context

NOW = datetime(2025, 3, 10, 12, 0)
STATS = DashboardStats(today_appointments=2, total_customers=5, total_services=4)


def appointment(day, at, service="Haarschnitt", price="45.00", status="confirmed"):
    return SimpleNamespace(
        appointment_date=day,
        appointment_time=at,
        status=status,
        customer_name="Lena Koch",
        staff_name="Anna Berg",
        service_name=service,
        service_price=Decimal(price),
    )


def test_dashboard_context_projects_today_schedule():
    appointments = [
        appointment(date(2025, 3, 10), time(14, 0), "Massage", "65.00"),
        appointment(date(2025, 3, 10), time(9, 0)),
        appointment(date(2025, 3, 10), time(10, 0), status="cancelled"),
        appointment(date(2025, 3, 8), time(9, 0)),
    ]
    context = dashboard_context("Salon Schnitt", STATS, appointments, NOW)

    assert [row["time"] for row in context["schedule"]] == ["09:00", "14:00"]
    assert context["schedule"][0]["is_past"] is True
    assert context["schedule"][1]["is_past"] is False
    assert context["today_revenue"] == "110.00"
    assert context["popular_service"] == "Haarschnitt"
    assert context["stats"]["total_customers"] == 5


def test_dashboard_chart_covers_last_week():
    appointments = [appointment(date(2025, 3, 8), time(9, 0)), appointment(date(2025, 2, 1), time(9, 0))]
    context = dashboard_context("Salon Schnitt", STATS, appointments, NOW)

    assert context["chart_labels"][0] == "04.03"
    assert context["chart_labels"][-1] == "10.03"
    assert context["chart_values"] == [0.0, 0.0, 0.0, 0.0, 45.0, 0.0, 0.0]


def test_dashboard_context_is_pure():
    appointments = [appointment(date(2025, 3, 10), time(9, 0))]
    assert dashboard_context("S", STATS, appointments, NOW) == dashboard_context("S", STATS, appointments, NOW)
