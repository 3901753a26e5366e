"""CLI tools for GenSheet administration."""

import click

from gensheet.core.security import hash_password
from gensheet.db.base import Base
from gensheet.db.enums import ChecksheetStatus, Role
from gensheet.db.models import BestPracticeTemplate, Checkpoint, Checksheet, Organization, User
from gensheet.db.session import SessionLocal, engine


DEMO_ORG_SLUG = "gensheet-demo"

SAMPLE_CHECKPOINTS = [
    {
        "title": "Emergency exits are clear and accessible",
        "description": "Verify all emergency exits are unobstructed",
        "field_type": "CHECKBOX",
        "is_required": True,
        "section": "Emergency Preparedness",
    },
    {
        "title": "Fire extinguisher inspection",
        "description": "Check pressure gauge and seal",
        "field_type": "DROPDOWN",
        "is_required": True,
        "section": "Emergency Preparedness",
        "config": {"options": ["OK", "Needs Attention", "Not OK"]},
    },
    {
        "title": "Temperature reading",
        "description": "Record warehouse temperature",
        "field_type": "NUMBER",
        "is_required": True,
        "section": "Environmental",
        "config": {"min": -20, "max": 50, "unit": "°C"},
    },
    {
        "title": "Lighting condition photo",
        "description": "Take photo of lighting conditions",
        "field_type": "PHOTO",
        "is_required": False,
        "section": "Environmental",
    },
    {
        "title": "PPE compliance check",
        "description": "All workers wearing required PPE",
        "field_type": "CHECKBOX",
        "is_required": True,
        "section": "Personnel Safety",
    },
    {
        "title": "Additional notes",
        "description": "Any additional observations",
        "field_type": "TEXTAREA",
        "is_required": False,
        "section": "General",
    },
]

SAMPLE_TEMPLATES = [
    {
        "title": "Forklift Pre-Operation Check",
        "description": "Daily operator check before using a powered industrial truck",
        "category": "safety",
        "industry": "logistics",
        "checkpoints": [
            {"title": "Forks free of cracks and bends", "fieldType": "CHECKBOX", "isRequired": True, "section": "Visual"},
            {"title": "Tire condition", "fieldType": "DROPDOWN", "isRequired": True, "section": "Visual",
             "config": {"options": ["Good", "Worn", "Damaged"]}},
            {"title": "Hydraulic fluid level", "fieldType": "CHECKBOX", "isRequired": True, "section": "Fluids"},
            {"title": "Horn and lights working", "fieldType": "CHECKBOX", "isRequired": True, "section": "Operational"},
            {"title": "Hour meter reading", "fieldType": "NUMBER", "section": "Operational", "config": {"min": 0, "unit": "h"}},
            {"title": "Operator signature", "fieldType": "SIGNATURE", "isRequired": True, "section": "Sign-off"},
        ],
    },
    {
        "title": "Kitchen Hygiene Audit",
        "description": "Food safety audit for commercial kitchens",
        "category": "healthcare",
        "industry": "food service",
        "checkpoints": [
            {"title": "Fridge temperature", "fieldType": "NUMBER", "isRequired": True, "section": "Storage",
             "config": {"min": 0, "max": 5, "unit": "°C"}},
            {"title": "Raw and cooked food stored separately", "fieldType": "CHECKBOX", "isRequired": True, "section": "Storage"},
            {"title": "Hand wash stations stocked", "fieldType": "CHECKBOX", "isRequired": True, "section": "Hygiene"},
            {"title": "Overall cleanliness", "fieldType": "RATING", "section": "Hygiene", "config": {"max": 5}},
            {"title": "Photo of prep area", "fieldType": "PHOTO", "section": "Evidence"},
        ],
    },
]


@click.group()
def cli():
    """GenSheet CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create all tables directly from the models.

    For development databases; production schemas are managed with
    `alembic upgrade head`.
    """
    Base.metadata.create_all(bind=engine)
    click.echo("✓ Database tables created")


def _get_or_create_user(db, email: str, name: str, password: str, role: Role, org: Organization) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        click.echo(f"  User already exists: {email}")
        return user
    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role.value,
        organization_id=org.id,
        language="en",
        timezone="UTC",
    )
    db.add(user)
    db.flush()
    click.echo(f"✓ Created {role.value.lower()}: {email}")
    return user


@cli.command()
def seed():
    """
    Seed a demo organization, admin and inspector users, a sample
    checksheet and best-practice templates.

    Example:
        python -m gensheet.cli seed
    """
    db = SessionLocal()
    try:
        org = db.query(Organization).filter(Organization.slug == DEMO_ORG_SLUG).first()
        if not org:
            org = Organization(name="GenSheet Demo", slug=DEMO_ORG_SLUG)
            db.add(org)
            db.flush()
            click.echo(f"✓ Created organization: {org.name}")

        admin = _get_or_create_user(db, "admin@gensheet.com", "Admin User", "admin123", Role.ADMIN, org)
        _get_or_create_user(db, "inspector@gensheet.com", "Inspector User", "inspector123", Role.INSPECTOR, org)

        title = "Daily Safety Inspection"
        if not db.query(Checksheet).filter(Checksheet.title == title).first():
            checksheet = Checksheet(
                title=title,
                description="Standard daily safety checksheet for warehouse operations",
                category="safety",
                industry="manufacturing",
                tags=["daily", "warehouse"],
                status=ChecksheetStatus.ACTIVE.value,
                creator_id=admin.id,
                organization_id=org.id,
                checkpoints=[
                    Checkpoint(order=order, config=item.get("config", {}), **{
                        k: v for k, v in item.items() if k != "config"
                    })
                    for order, item in enumerate(SAMPLE_CHECKPOINTS)
                ],
            )
            db.add(checksheet)
            click.echo(f"✓ Created checksheet: {title} ({len(SAMPLE_CHECKPOINTS)} checkpoints)")

        for template in SAMPLE_TEMPLATES:
            if db.query(BestPracticeTemplate).filter(BestPracticeTemplate.title == template["title"]).first():
                continue
            db.add(BestPracticeTemplate(
                title=template["title"],
                description=template["description"],
                category=template["category"],
                industry=template["industry"],
                template_data={"checkpoints": template["checkpoints"]},
                is_public=True,
                created_by_user_id=admin.id,
            ))
            click.echo(f"✓ Created template: {template['title']}")

        db.commit()
        click.echo("→ Log in as admin@gensheet.com / admin123 or inspector@gensheet.com / inspector123")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--password", required=True, prompt=True, hide_input=True, help="Initial password")
@click.option("--name", default=None, help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role], case_sensitive=False),
    default=Role.INSPECTOR.value,
    help="User role (default: INSPECTOR)",
)
@click.option("--org-slug", default=None, help="Organization slug (optional)")
def create_user(email: str, password: str, name: str | None, role: str, org_slug: str | None):
    """
    Create a user.

    Example:
        python -m gensheet.cli create-user --email "lead@acme.com" --role SUPERVISOR --org-slug acme
    """
    from gensheet.schemas.user import UserCreate
    from gensheet.services import user_service

    db = SessionLocal()
    try:
        org_id = None
        if org_slug:
            org = db.query(Organization).filter(Organization.slug == org_slug.lower()).first()
            if not org:
                click.echo(f"❌ Organization not found: {org_slug}")
                return
            org_id = org.id

        user = user_service.create_user(db, UserCreate(
            email=email,
            name=name,
            password=password,
            role=Role(role.upper()),
            organization_id=org_id,
        ))
        click.echo(f"✓ Created user: {user.email} ({user.role})")
        click.echo(f"  ID: {user.id}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m gensheet.cli revoke-sessions --email "user@example.com"
    """
    from gensheet.services import user_service

    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        user_service.revoke_all_sessions(db, user.id)
        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {old_version + 1}")

    finally:
        db.close()


if __name__ == "__main__":
    cli()
