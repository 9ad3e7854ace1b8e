"""CLI tools for print-shop administration."""

import click

from printshop.core.security import hash_password as make_password_hash
from printshop.db.session import SessionLocal
from printshop.services import department_service


@click.group()
def cli():
    """Print shop CLI tools."""
    pass


@cli.command()
def seed_departments():
    """
    Create the six pipeline departments if they are missing.

    Safe to run repeatedly; existing departments are left untouched.

    Example:
        python -m printshop.cli seed-departments
    """
    db = SessionLocal()
    try:
        created = department_service.seed_default_departments(db)
        for department in created:
            click.echo(f"✓ Created department: {department.name}")
        if not created:
            click.echo("✓ All departments already exist")
        for position, department in enumerate(department_service.list_ordered(db), start=1):
            click.echo(f"  {position}. {department.name}")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.password_option(help="Owner password to hash")
def hash_password(password: str):
    """
    Print an OWNER_PASSWORD_HASH value for the owner's password sign-in.

    Example:
        python -m printshop.cli hash-password
    """
    click.echo(make_password_hash(password))


if __name__ == "__main__":
    cli()
