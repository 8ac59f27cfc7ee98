from django.core.management.base import BaseCommand

from registry.lifecycle import expiry_alerts
from registry.registrations import registration_summary


class Command(BaseCommand):
    help = "Print pending registrations that have expired or expire within the alert window."

    def _section(self, title, alerts):
        self.stdout.write(self.style.MIGRATE_HEADING(f"{title} ({len(alerts)})"))
        for alert in alerts:
            row = registration_summary(alert.registration)
            self.stdout.write(
                f"  {row['customer_id']:<12} {row['full_name']:<30} {row['mobile_number']:<12} "
                f"expires {alert.effective_expiry:%d/%m/%Y} ({alert.days_remaining}d)"
            )

    def handle(self, *args, **options):
        buckets = expiry_alerts()
        self._section("Expired", buckets.expired)
        self._section("Expiring soon", buckets.expiring_soon)
