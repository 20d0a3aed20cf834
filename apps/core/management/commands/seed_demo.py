import random
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone
from faker import Faker

from apps.core.business_rules import ClientFrequency, TaskPriority
from apps.core.exceptions import ServiceError
from apps.core.store import KIND_CLIENTS, entity_store
from apps.visits.services import VisitService


class Command(BaseCommand):
    help = "Seed the database with demo clients, visits and corrective tasks"

    def add_arguments(self, parser):
        parser.add_argument('--clients', type=int, default=8, help='Number of clients to create')
        parser.add_argument('--visits', type=int, default=3, help='Visits per client')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    def handle(self, *args, **options):
        fake = Faker('es_AR')
        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])

        technicians = list(settings.TECHNICIANS)
        now = timezone.now()

        self.stdout.write("🧯 Starting demo seeding...")

        clients_created = visits_created = tasks_created = 0
        for _ in range(options['clients']):
            try:
                client_id = entity_store.create(KIND_CLIENTS, {
                    'company_name': fake.company(),
                    'address': fake.street_address(),
                    'referent_name': fake.name(),
                    'referent_position': random.choice(['Gerente', 'Encargado de Mantenimiento', 'Administración']),
                    'contract_ref': f"CT-{now.year}-{random.randint(100, 999)}",
                    'report_emails': [fake.company_email()],
                    'frequency': random.choice(ClientFrequency.values),
                })
            except ServiceError as exc:
                self.stdout.write(f"   ❌ Error creating client: {exc.message}")
                continue
            clients_created += 1

            for _ in range(options['visits']):
                scheduled = now + timedelta(days=random.randint(-30, 30), hours=random.randint(-4, 4))
                visit_id = VisitService.schedule_visit({
                    'client_id': client_id,
                    'scheduled_date': scheduled,
                    'technicians': random.sample(technicians, k=min(2, len(technicians))),
                })
                visits_created += 1

                # Past visits get completed, sometimes with issues found on site
                if scheduled < now and technicians:
                    issues = [
                        {'description': fake.sentence(nb_words=6), 'priority': random.choice(TaskPriority.values)}
                        for _ in range(random.randint(0, 2))
                    ]
                    result = VisitService.complete_visit(
                        visit_id,
                        technicians=random.sample(technicians, k=1),
                        notes=fake.sentence(),
                        issues=issues,
                        now=scheduled + timedelta(hours=2)
                    )
                    tasks_created += len(result['task_ids'])

        self.stdout.write(self.style.SUCCESS(
            f"✅ Seeded {clients_created} clients, {visits_created} visits, {tasks_created} corrective tasks"
        ))
