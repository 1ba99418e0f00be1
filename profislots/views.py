from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from profislots.models import STATUS_CANCELLED
from profislots.schemas import DashboardStats
from profislots.slots import format_slot

CHART_DAYS = 7


def dashboard_context(salon_name: str, stats: DashboardStats, appointments: Iterable, now: datetime) -> dict:
    """Projects dashboard state onto the template context.

    ``appointments`` are the salon's appointments of the last CHART_DAYS days
    (today included). The result only depends on the arguments.
    """
    appointments = [a for a in appointments if a.status != STATUS_CANCELLED]
    today = now.date()

    # Расписание на сегодня
    schedule = [
        {
            "time": format_slot(a.appointment_time),
            "customer": a.customer_name,
            "staff": a.staff_name,
            "service": a.service_name,
            "status": a.status,
            "is_past": datetime.combine(today, a.appointment_time) <= now,
        }
        for a in sorted(appointments, key=lambda a: a.appointment_time)
        if a.appointment_date == today
    ]

    # Выручка за последние 7 дней (включая сегодня)
    chart_data = {}
    for i in range(CHART_DAYS - 1, -1, -1):
        chart_data[(today - timedelta(days=i)).strftime("%d.%m")] = Decimal("0")

    for a in appointments:
        date_key = a.appointment_date.strftime("%d.%m")
        if date_key in chart_data:
            chart_data[date_key] += a.service_price or Decimal("0")

    today_revenue = sum(
        (a.service_price or Decimal("0") for a in appointments if a.appointment_date == today),
        Decimal("0"),
    )

    services = [a.service_name for a in appointments if a.service_name]
    popular_service = max(set(services), key=services.count) if services else "—"

    return {
        "salon_name": salon_name,
        "today": today.isoformat(),
        "stats": stats.model_dump(),
        "schedule": schedule,
        "today_revenue": f"{today_revenue:.2f}",
        "popular_service": popular_service,
        "chart_labels": list(chart_data.keys()),
        "chart_values": [float(v) for v in chart_data.values()],
    }
