"""SimpleIT CLI tool."""

from typing import Optional

import typer

app = typer.Typer(name="simpleit", help="SimpleIT management CLI")
db_app = typer.Typer(help="Database management commands")
users_app = typer.Typer(help="User management commands")
app.add_typer(db_app, name="db")
app.add_typer(users_app, name="users")


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    import pymysql
    from sqlalchemy.engine import make_url
    from simpleit.core.config import settings

    url = make_url(settings.DATABASE_URL)
    if not url.drivername.startswith("mysql"):
        typer.echo(f"Nothing to create for {url.drivername}")
        return

    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{url.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
        typer.echo(f"Database '{url.database}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create all tables."""
    from simpleit.db.session import init_db

    init_db()
    typer.echo("Tables created")


@db_app.command("seed")
def db_seed(sample: bool = typer.Option(False, help="Also insert sample users and assets")):
    """Seed the default admin and, optionally, sample data."""
    from simpleit.db.session import SessionLocal
    from simpleit.db.seeds.seed_users import seed_admin, seed_sample_data

    db = SessionLocal()
    try:
        admin = seed_admin(db)
        typer.echo(f"Admin user '{admin.username}' ready")
        if sample:
            created = seed_sample_data(db)
            typer.echo(f"Seeded {created} sample users")
    finally:
        db.close()


@users_app.command("create")
def users_create(
    username: str,
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    role: str = typer.Option("employee", help="admin, manager, agent or employee"),
    manager_id: Optional[int] = typer.Option(None, help="Supervisor's user id"),
):
    """Create a user from the command line (acts with admin rights)."""
    from simpleit.db.session import SessionLocal
    from simpleit.services.auth_service import auth_service
    from simpleit.core.exceptions import SimpleITError
    from simpleit.core.roles import Role

    db = SessionLocal()
    try:
        user = auth_service.create_user(
            db, Role.admin.value, username, password, role=role, manager_id=manager_id,
        )
        typer.echo(f"Created user {user.username} (id={user.id}, role={user.role})")
    except SimpleITError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()


@users_app.command("roles")
def users_roles():
    """Print the role hierarchy and permission counts."""
    from simpleit.core.roles import get_roles_by_level

    for definition in get_roles_by_level():
        typer.echo(
            f"{definition.level}  {definition.id:<10} {definition.display_name['en']:<10} "
            f"{definition.display_name['ar']:<8} {len(definition.permissions)} permissions"
        )


if __name__ == "__main__":
    app()
