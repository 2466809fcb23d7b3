#!/usr/bin/env python3
"""Seed a local database with the demo farm crew and task templates.

Usage:
    uv run python scripts/seed_demo_data.py
    uv run python scripts/seed_demo_data.py --with-assignments
"""

import asyncio
import logging
import sys

from src.core import clock, db_client
from src.core.db_client import sanitize_param
from src.core.module_registry import register_default_modules
from src.modules.tasks import service as assignment_service
from src.modules.tasks import templates


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

WORKERS = [
    {"name": "John Kamau", "role": "Field Worker", "email": "john@farm.com", "phone": "+254 712 345 678"},
    {"name": "Mary Wanjiku", "role": "Livestock Manager", "email": "mary@farm.com", "phone": "+254 723 456 789"},
    {"name": "Peter Mwangi", "role": "Equipment Operator", "email": "peter@farm.com", "phone": "+254 734 567 890"},
    {"name": "Jane Akinyi", "role": "Field Worker", "email": "jane@farm.com", "phone": "+254 745 678 901"},
    {"name": "David Ochieng", "role": "General Worker", "email": "david@farm.com", "phone": "+254 756 789 012"},
]

TEMPLATES = [
    {
        "title": "Daily Cattle Feeding",
        "description": "Feed the dairy herd and check water supply",
        "category": "daily",
        "priority": "high",
        "estimated_duration_hours": 2,
        "subtasks": [
            {"title": "Prepare dairy meal concentrate", "description": "Mix 400kg of concentrate"},
            {"title": "Distribute feed to dairy cows", "description": "8kg per cow, twice daily"},
            {"title": "Check water troughs", "description": "Ensure all troughs are clean and full"},
            {"title": "Record feeding quantities", "description": "Update feeding log"},
        ],
    },
    {
        "title": "Weekly Cattle Dipping",
        "description": "Tick control dipping for the whole herd",
        "category": "weekly",
        "priority": "high",
        "estimated_duration_hours": 3,
        "subtasks": [
            {"title": "Prepare dipping solution", "description": "Mix 5 liters of acaricide in dipping tank"},
            {"title": "Round up all cattle", "description": "Bring all cattle to dipping area"},
            {"title": "Dip each animal", "description": "Ensure complete immersion"},
            {"title": "Record dipping", "description": "Update dipping log with date and chemical used"},
        ],
    },
    {
        "title": "Maize Field Inspection",
        "description": "Walk the maize field looking for pests and irrigation faults",
        "category": "daily",
        "estimated_duration_hours": 1.5,
        "subtasks": [
            {"title": "Walk through entire field", "description": "Inspect all sections systematically"},
            {"title": "Check for pests", "description": "Look for fall armyworm, stalk borers"},
            {"title": "Check irrigation system", "description": "Ensure sprinklers are working"},
            {"title": "Report any issues", "description": "Document and report problems immediately"},
        ],
    },
    {
        "title": "Equipment Maintenance",
        "description": "Monthly tractor service",
        "category": "monthly",
        "priority": "low",
        "estimated_duration_hours": 4,
        "subtasks": [
            {"title": "Tractor oil change", "description": "Change engine oil and filters"},
            {"title": "Grease all moving parts", "description": "Lubricate joints and bearings"},
            {"title": "Check tire pressure", "description": "Inflate to recommended PSI", "required": False},
            {"title": "Test all systems", "description": "Hydraulics, brakes, lights"},
        ],
    },
]


async def seed_workers() -> list[dict]:
    """Create demo workers, skipping any that already exist by name."""
    created = []
    for worker in WORKERS:
        existing = await db_client.get_first_record(
            collection="workers",
            filter_query=f'name = "{sanitize_param(worker["name"])}"',
        )
        if existing:
            logger.info(f"Worker exists: {worker['name']}")
            created.append(existing)
            continue
        created.append(await db_client.create_record(collection="workers", data=worker))
        logger.info(f"Created worker: {worker['name']} ({worker['role']})")
    return created


async def seed_templates() -> list:
    """Create demo templates."""
    created = []
    for payload in TEMPLATES:
        template = await templates.create_template(created_by="seed", **payload)
        created.append(template)
        logger.info(f"Created template: {template.title} ({len(template.subtasks)} subtasks)")
    return created


async def seed_assignments(workers: list[dict], seeded_templates: list) -> None:
    """Assign each template to a worker for today."""
    today = clock.today()
    for index, template in enumerate(seeded_templates):
        worker = workers[index % len(workers)]
        assignment = await assignment_service.create_assignment(
            template_id=template.id,
            worker_id=worker["id"],
            assigned_date=today,
            due_date=today,
        )
        logger.info(f"Assigned {assignment.template_title} to {assignment.worker_name}")


async def main() -> None:
    """Seed the configured database."""
    with_assignments = "--with-assignments" in sys.argv[1:]

    register_default_modules()
    await db_client.init_db()
    try:
        workers = await seed_workers()
        seeded_templates = await seed_templates()
        if with_assignments:
            await seed_assignments(workers, seeded_templates)
    finally:
        await db_client.close_connection()


if __name__ == "__main__":
    asyncio.run(main())
