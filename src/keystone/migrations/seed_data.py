"""Sample business data and the Insights dashboard.

Usage::

    keystone migrate run sample-data
    keystone migrate run seed-data
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from keystone.migrations.base import Migration, register
from keystone.models.schemas import DashboardSpec, PanelSpec

logger = logging.getLogger(__name__)


# ── sample-data fixtures ──────────────────────────────────────────────────────

SAMPLE_CUSTOMERS = [
    {"customer_name": "Acme Corporation", "email": "contact@acme.com", "phone": "+1-555-0101",
     "company": "Acme Corp", "address": "123 Innovation Drive, Tech City", "status": "Active"},
    {"customer_name": "Tech Startup Inc", "email": "hello@techstartup.io", "phone": "+1-555-0102",
     "company": "Tech Startup", "address": "456 Founder Way, Silicon Valley", "status": "Active"},
    {"customer_name": "Digital Solutions Ltd", "email": "info@digitalsolutions.co.uk",
     "phone": "+44-20-7946-0123", "company": "Digital Solutions", "address": "789 High Street, London",
     "status": "Active"},
]

SAMPLE_DEVELOPERS = [
    {"developer_name": "Alice Johnson", "email": "alice@dev.com", "phone": "+1-555-1001",
     "specialization": "Frontend Development", "hourly_rate": 75.00, "availability": "Available",
     "skills": {"languages": ["JavaScript", "TypeScript", "HTML", "CSS"],
                "frameworks": ["React", "Vue.js", "Next.js"], "tools": ["Git", "Webpack", "Figma"]},
     "status": "Active"},
    {"developer_name": "Bob Smith", "email": "bob@dev.com", "phone": "+1-555-1002",
     "specialization": "Backend Development", "hourly_rate": 80.00, "availability": "Busy",
     "skills": {"languages": ["Node.js", "Python", "PHP"], "frameworks": ["Express", "Django", "Laravel"],
                "databases": ["PostgreSQL", "MongoDB", "Redis"]},
     "status": "Active"},
    {"developer_name": "Carol Williams", "email": "carol@dev.com", "phone": "+1-555-1003",
     "specialization": "Full-Stack Development", "hourly_rate": 85.00, "availability": "Available",
     "skills": {"languages": ["JavaScript", "Python", "TypeScript"],
                "frameworks": ["React", "Node.js", "Django", "Next.js"],
                "databases": ["PostgreSQL", "MySQL", "MongoDB"], "cloud": ["AWS", "Google Cloud"]},
     "status": "Active"},
]

# customer index -> project
SAMPLE_PROJECTS = [
    (0, {"project_name": "Website Redesign",
         "description": "Complete redesign of corporate website with modern UI/UX. Includes responsive "
                        "design, performance optimization, and CMS integration.",
         "budget": 15000.00, "priority": "High", "status": "In Progress",
         "start_date": "2026-02-01", "deadline": "2026-04-30"}),
    (1, {"project_name": "Mobile App Development",
         "description": "Native mobile application for iOS and Android. Features include user "
                        "authentication, real-time notifications, and payment integration.",
         "budget": 25000.00, "priority": "Medium", "status": "Draft",
         "start_date": "2026-03-01", "deadline": "2026-07-31"}),
    (2, {"project_name": "E-Commerce Platform",
         "description": "Custom e-commerce solution with inventory management, payment gateway "
                        "integration, and analytics dashboard.",
         "budget": 35000.00, "priority": "High", "status": "In Progress",
         "start_date": "2026-01-15", "deadline": "2026-06-15"}),
]

# One batch per project: (project index, developer index, role)
SAMPLE_ASSIGNMENTS = [
    [(0, 0, "Lead Frontend Developer"), (0, 2, "Full-Stack Developer")],
    [(1, 1, "Backend Developer"), (1, 2, "Lead Full-Stack Developer")],
    [(2, 0, "Frontend Developer"), (2, 1, "Lead Backend Developer"), (2, 2, "Full-Stack Developer")],
]


# ── seed-data fixtures ────────────────────────────────────────────────────────

SEED_CUSTOMERS = [
    {"customer_name": "Aarya ITS", "email": "info@aaryaits.com", "phone": "+91-9876543210",
     "company": "Aarya IT Solutions", "status": "Active", "notes": "Primary client - web development projects"},
    {"customer_name": "TechVista Corp", "email": "contact@techvista.com", "phone": "+91-8765432109",
     "company": "TechVista Corporation", "status": "Active", "notes": "E-commerce platform projects"},
    {"customer_name": "GreenLeaf Digital", "email": "hello@greenleaf.io", "phone": "+91-7654321098",
     "company": "GreenLeaf Digital Agency", "status": "Active", "notes": "Marketing website projects"},
    {"customer_name": "StartupHub", "email": "admin@startuphub.in", "phone": "+91-6543210987",
     "company": "StartupHub Incubator", "status": "Inactive", "notes": "MVP development - on hold"},
]

SEED_DEVELOPERS = [
    {"developer_name": "Ramki R", "email": "ramki.r@aaryaits.com", "phone": "+91-9000000001",
     "specialization": "Full Stack", "hourly_rate": 75.00, "availability": "Available", "status": "Active",
     "skills": ["Vue.js", "Nuxt", "Node.js", "WordPress", "Directus"]},
    {"developer_name": "Priya S", "email": "priya.s@aaryaits.com", "phone": "+91-9000000002",
     "specialization": "Frontend", "hourly_rate": 55.00, "availability": "Busy", "status": "Active",
     "skills": ["React", "Vue.js", "Tailwind", "Figma"]},
    {"developer_name": "Arjun K", "email": "arjun.k@aaryaits.com", "phone": "+91-9000000003",
     "specialization": "Backend", "hourly_rate": 65.00, "availability": "Available", "status": "Active",
     "skills": ["Node.js", "Python", "MySQL", "Docker"]},
    {"developer_name": "Meena V", "email": "meena.v@aaryaits.com", "phone": "+91-9000000004",
     "specialization": "DevOps", "hourly_rate": 70.00, "availability": "Available", "status": "Active",
     "skills": ["AWS", "Docker", "CI/CD", "Linux"]},
]

SEED_PROJECTS = [
    (0, {"project_name": "AITS Dashboard",
         "description": "Internal project management dashboard with Nuxt.js + Directus",
         "status": "In Progress", "priority": "High", "budget": 15000.00,
         "start_date": "2025-01-15", "deadline": "2025-04-30"}),
    (1, {"project_name": "TechVista E-Commerce",
         "description": "Full e-commerce platform with payment gateway integration",
         "status": "In Progress", "priority": "High", "budget": 35000.00,
         "start_date": "2025-02-01", "deadline": "2025-06-30"}),
    (2, {"project_name": "GreenLeaf Marketing Site", "description": "Corporate marketing website with CMS",
         "status": "Draft", "priority": "Medium", "budget": 8000.00,
         "start_date": "2025-03-01", "deadline": "2025-05-15"}),
    (3, {"project_name": "StartupHub MVP",
         "description": "Minimum viable product for startup incubator platform",
         "status": "Cancelled", "priority": "Low", "budget": 12000.00,
         "start_date": "2025-01-01", "end_date": "2025-02-15"}),
    (0, {"project_name": "API Gateway Microservice",
         "description": "Centralized API gateway for all client services",
         "status": "Completed", "priority": "High", "budget": 10000.00,
         "start_date": "2024-10-01", "end_date": "2024-12-20"}),
]

# (project index, developer index, role)
SEED_ASSIGNMENTS = [
    (0, 0, "Lead"), (0, 1, "Contributor"),
    (1, 0, "Contributor"), (1, 2, "Lead"), (1, 3, "Contributor"),
    (2, 1, "Lead"),
    (4, 2, "Lead"), (4, 3, "Contributor"),
]

# (project index, developer index, minutes, days ago, notes)
SEED_TIME_LOGS = [
    (0, 0, 120, 0, "Dashboard layout and component structure"),
    (0, 0, 180, 1, "Directus API integration"),
    (0, 0, 90, 2, "Authentication flow"),
    (0, 0, 240, 5, "Time tracking module"),
    (0, 1, 150, 1, "UI component design"),
    (0, 1, 60, 3, "Responsive layout fixes"),
    (1, 0, 60, 4, "Payment gateway research"),
    (1, 2, 300, 0, "Product catalog API"),
    (1, 2, 240, 2, "Cart and checkout backend"),
    (1, 2, 180, 6, "Order management system"),
    (1, 3, 120, 1, "Docker setup and CI/CD pipeline"),
    (1, 3, 90, 7, "AWS deployment config"),
    (2, 1, 180, 3, "Homepage design implementation"),
    (4, 2, 360, 10, "API Gateway core implementation"),
    (4, 3, 240, 11, "Load balancer and rate limiting"),
]

# (title, description, status, priority, customer idx, project idx, developer idx)
SEED_TICKETS = [
    ("Dashboard not loading on mobile", "The dashboard page crashes on iOS Safari", "Open", "High", 0, 0, 1),
    ("Login timeout too short", "Users are being logged out after 5 minutes of inactivity",
     "In Progress", "Medium", 0, 0, 0),
    ("Payment gateway 500 error", "Stripe checkout returns 500 intermittently", "Open", "Urgent", 1, 1, 2),
    ("Product images not displaying", "Thumbnails show broken image icons in catalog",
     "Resolved", "Medium", 1, 1, 2),
    ("SEO meta tags missing", "Pages missing Open Graph and meta description tags", "Open", "Low", 2, 2, 1),
    ("SSL certificate renewal", "SSL cert expiring in 7 days, needs renewal", "Closed", "High", 0, 4, 3),
    ("API rate limiting not working", "Rate limiter allows unlimited requests", "In Progress", "High", 0, 4, 2),
]

DASHBOARD = DashboardSpec(
    name="Project & Billing Metrics",
    icon="dashboard",
    note="Overview of projects, time tracking, tickets, and billing",
    color="#6644FF",
)


def _metric(name: str, icon: str, color: str, x: int, y: int, **options: Any) -> PanelSpec:
    return PanelSpec(name=name, icon=icon, color=color, type="metric",
                     position_x=x, position_y=y, width=6, height=5, options=options)


def _status(value: str) -> dict:
    return {"status": {"_eq": value}}


PANELS = [
    # Row 1: overview metrics
    _metric("Total Projects", "work", "#2ECDA7", 1, 1, collection="projects", function="count"),
    _metric("Total Customers", "people", "#FF6B6B", 7, 1, collection="customers", function="count"),
    _metric("Active Developers", "code", "#4ECDC4", 13, 1,
            collection="developers", function="count", filter=_status("Active")),
    _metric("Total Time Logged (min)", "schedule", "#FFD93D", 19, 1,
            collection="time_logs", function="sum", field="minutes"),
    # Row 2: tickets
    _metric("Open Tickets", "bug_report", "#FF4444", 1, 6,
            collection="support_tickets", function="count", filter=_status("Open")),
    _metric("In Progress Tickets", "pending", "#FFA726", 7, 6,
            collection="support_tickets", function="count", filter=_status("In Progress")),
    _metric("Resolved Tickets", "check_circle", "#66BB6A", 13, 6,
            collection="support_tickets", function="count", filter=_status("Resolved")),
    _metric("All Tickets", "confirmation_number", "#AB47BC", 19, 6,
            collection="support_tickets", function="count"),
    # Rows 3-4: lists
    PanelSpec(name="Active Projects", icon="folder_open", color="#26A69A", type="list",
              position_x=1, position_y=11, width=12, height=10,
              options={"collection": "projects", "limit": 10, "sort": "-date_created",
                       "fields": ["project_name", "status", "priority", "budget"],
                       "filter": {"status": {"_in": ["Draft", "In Progress"]}}}),
    PanelSpec(name="Recent Time Logs", icon="timer", color="#5C6BC0", type="list",
              position_x=13, position_y=11, width=12, height=10,
              options={"collection": "time_logs", "limit": 10, "sort": "-log_date",
                       "fields": ["minutes", "log_date", "notes"]}),
    PanelSpec(name="Urgent & High Priority Tickets", icon="priority_high", color="#E53935", type="list",
              position_x=1, position_y=21, width=24, height=8,
              options={"collection": "support_tickets", "limit": 10, "sort": "-date_created",
                       "fields": ["title", "status", "priority"],
                       "filter": {"priority": {"_in": ["High", "Urgent"]}}}),
]

SEEDED_COLLECTIONS = [
    "customers", "developers", "projects", "projects_developers", "time_logs", "support_tickets",
]


def item_label(item: dict[str, Any]) -> str:
    """Human label for a seeded row, used in progress logs."""
    for key in ("customer_name", "developer_name", "project_name", "title", "role"):
        if item.get(key):
            return str(item[key])
    if item.get("minutes") is not None:
        return f"{item['minutes']}m"
    return "created"


def ref(rows: list[dict[str, Any] | None], index: int) -> Any:
    """Id of the *index*-th created row, or None if that row was not created."""
    if 0 <= index < len(rows) and rows[index] is not None:
        return rows[index].get("id")
    return None


def log_dates(today: date, days: int = 14) -> list[str]:
    """ISO dates for today and the preceding days, newest first."""
    return [(today - timedelta(days=i)).isoformat() for i in range(days)]


@register
class SampleData(Migration):
    name = "sample-data"
    description = "Three customers, developers and projects with team assignments"
    order = 40
    kind = "data"

    async def run(self) -> None:
        customers = await self._batch("customers", SAMPLE_CUSTOMERS)

        developers = await self._batch("developers", SAMPLE_DEVELOPERS)

        if len(customers) < len(SAMPLE_CUSTOMERS):
            logger.warning("Not enough customers found to link projects")
            projects = await self._existing("projects")
        else:
            projects = await self._batch(
                "projects",
                [{**project, "customer_id": customers[i]["id"]} for i, project in SAMPLE_PROJECTS],
            )

        logger.info("Assigning developers to projects")
        for batch in SAMPLE_ASSIGNMENTS:
            rows = [
                {"projects_id": ref(projects, p), "developers_id": ref(developers, d), "role": role}
                for p, d, role in batch
            ]
            if any(row["projects_id"] is None or row["developers_id"] is None for row in rows):
                self.skip("projects_developers batch", "missing project or developer")
                break
            r = await self.client.create_items("projects_developers", rows)
            if not self.record(f"assign {len(rows)} developers to project {rows[0]['projects_id']}", r):
                logger.warning("Developer assignments failed (likely already exist), skipping")
                break

    async def _batch(self, collection: str, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        r = await self.client.create_items(collection, items)
        if self.record(f"create {len(items)} {collection}", r, optional=True):
            return r.items
        logger.info("%s creation failed (likely already exist), fetching existing", collection)
        return await self._existing(collection)

    async def _existing(self, collection: str) -> list[dict[str, Any]]:
        rows = await self.client.read_items(collection, fields=["id"])
        logger.info("Found %d existing %s", len(rows), collection)
        return rows


@register
class SeedData(Migration):
    name = "seed-data"
    description = "Seed customers, developers, projects, time logs, tickets and the Insights dashboard"
    order = 80
    kind = "data"

    async def run(self) -> None:
        logger.info("Seeding customers")
        customers = await self._create_each("customers", SEED_CUSTOMERS)

        logger.info("Seeding developers")
        developers = await self._create_each("developers", SEED_DEVELOPERS)

        logger.info("Seeding projects")
        projects = await self._create_each(
            "projects",
            [{**project, "customer_id": ref(customers, c)} for c, project in SEED_PROJECTS],
        )

        if not any(projects) or not any(developers):
            logger.warning("No projects or developers created, skipping assignments, logs and tickets")
        else:
            logger.info("Assigning developers to projects")
            await self._create_each(
                "projects_developers",
                self._linked(
                    {"projects_id": ref(projects, p), "developers_id": ref(developers, d), "role": role}
                    for p, d, role in SEED_ASSIGNMENTS
                ),
            )

            logger.info("Seeding time logs")
            dates = log_dates(date.today())
            await self._create_each(
                "time_logs",
                self._linked(
                    {"project_id": ref(projects, p), "developer_id": ref(developers, d),
                     "minutes": minutes, "log_date": dates[days_ago], "notes": notes}
                    for p, d, minutes, days_ago, notes in SEED_TIME_LOGS
                ),
            )

            if any(customers):
                logger.info("Seeding support tickets")
                await self._create_each(
                    "support_tickets",
                    self._linked(
                        {"title": title, "description": description, "status": status,
                         "priority": priority, "customer_id": ref(customers, c),
                         "project_id": ref(projects, p), "assigned_developer_id": ref(developers, d)}
                        for title, description, status, priority, c, p, d in SEED_TICKETS
                    ),
                )

        logger.info("Creating Insights dashboard")
        await self._dashboard()

        logger.info("=" * 50)
        for collection in SEEDED_COLLECTIONS:
            count = await self.client.count_items(collection)
            logger.info("  %s: %s items", collection, "?" if count is None else count)
        logger.info("Open %s -> Insights to see the dashboard", self.client.base_url)

    async def _create_each(
        self, collection: str, items: list[dict[str, Any] | None]
    ) -> list[dict[str, Any] | None]:
        """Create rows one by one; the result is index-aligned with *items*.

        A failed or skipped row leaves ``None`` in its slot so that later
        ``ref(rows, i)`` lookups never shift onto a neighbouring record.
        """
        created: list[dict[str, Any] | None] = []
        for item in items:
            if item is None:
                created.append(None)
                continue
            created.append(await self.create_item(collection, item, item_label(item)))
        return created

    def _linked(self, rows) -> list[dict[str, Any] | None]:
        """Blank out rows that reference a record which failed to seed."""
        kept: list[dict[str, Any] | None] = []
        for row in rows:
            if any(v is None for k, v in row.items() if k.endswith("_id")):
                self.skip(f"row {item_label(row)}", "missing reference")
                kept.append(None)
                continue
            kept.append(row)
        return kept

    async def _dashboard(self) -> None:
        r = await self.client.create_dashboard(DASHBOARD.payload())
        if not self.record(f"dashboard {DASHBOARD.name}", r):
            return
        dashboard_id = r.payload["id"]
        for panel in PANELS:
            pr = await self.client.create_panel(panel.for_dashboard(dashboard_id))
            self.record(f"panel {panel.name}", pr)
