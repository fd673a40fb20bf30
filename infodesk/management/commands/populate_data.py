"""
Management command to seed the directory with sample departments and doctors.
Idempotent: existing rows are left as they are.
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from infodesk.models import Department, Doctor

SAMPLE_DIRECTORY = {
    "Cardiology": ("Heart and blood vessel care", [
        ("Dr. Alice Morgan", "Interventional Cardiology"),
        ("Dr. Ben Okafor", "Electrophysiology"),
    ]),
    "Neurology": ("Brain, spine and nerve disorders", [
        ("Dr. Chen Wei", "Stroke Medicine"),
    ]),
    "Pediatrics": ("Care for infants, children and adolescents", [
        ("Dr. Dana Ruiz", "Neonatology"),
        ("Dr. Evan Patel", "Pediatric Allergy"),
    ]),
    "Orthopedics": ("Bones, joints and sports injuries", [
        ("Dr. Farah Haddad", "Joint Replacement"),
    ]),
}


class Command(BaseCommand):
    help = "Populate the directory with sample departments and doctors"

    @transaction.atomic
    def handle(self, *args, **options):
        created_depts = created_doctors = 0
        for dept_name, (description, doctors) in SAMPLE_DIRECTORY.items():
            dept, created = Department.objects.get_or_create(
                name=dept_name, defaults={"description": description}
            )
            created_depts += int(created)
            for name, specialization in doctors:
                _, created = Doctor.objects.get_or_create(
                    name=name, department=dept, defaults={"specialization": specialization}
                )
                created_doctors += int(created)
        self.stdout.write(self.style.SUCCESS(
            f"Directory ready: {created_depts} departments and {created_doctors} doctors created"
        ))
