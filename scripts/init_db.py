from __future__ import annotations

import sys
from pathlib import Path

from alembic import command
from alembic.autogenerate import api as ag_api
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect

from wellquest.db.engine import make_engine
from wellquest.models import Base


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def pending_model_changes() -> list:
    """Return the operations needed to bring the database in line with the models.

    An empty list means the migrations and ``wellquest.models`` agree.
    """
    engine = make_engine()
    with engine.connect() as connection:
        context = MigrationContext.configure(
            connection=connection,
            opts={
                "compare_type": True,
                "render_as_batch": connection.dialect.name == "sqlite",
            },
        )
        upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
    if upgrade_ops is None:
        return []
    return list(upgrade_ops.ops or [])


def main() -> int:
    """Migrate to head, list the tables and report any model/schema drift."""
    upgrade_db()

    engine = make_engine()
    tables = sorted(inspect(engine).get_table_names())
    print("Current tables:", ", ".join(tables))

    drift = pending_model_changes()
    if drift:
        print("Models and migrations disagree:", file=sys.stderr)
        for op in drift:
            print(f"  - {op}", file=sys.stderr)
        return 1
    print("Schema matches models.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
