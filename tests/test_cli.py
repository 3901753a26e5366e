"""Administration CLI against a throwaway database."""

import pytest
from click.testing import CliRunner
from sqlalchemy.orm import sessionmaker

from gensheet import cli as cli_module
from gensheet.db.models import BestPracticeTemplate, Checksheet, User
from gensheet.db.session import build_engine


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    engine = build_engine(f"sqlite:///{tmp_path / 'cli.db'}")
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(cli_module, "engine", engine)
    monkeypatch.setattr(cli_module, "SessionLocal", factory)
    yield factory
    engine.dispose()


def test_init_db_then_seed_is_idempotent(cli_db):
    runner = CliRunner()
    assert runner.invoke(cli_module.cli, ["init-db"]).exit_code == 0

    first = runner.invoke(cli_module.cli, ["seed"])
    assert first.exit_code == 0
    assert "Created checksheet: Daily Safety Inspection (6 checkpoints)" in first.output

    second = runner.invoke(cli_module.cli, ["seed"])
    assert "User already exists: admin@gensheet.com" in second.output

    db = cli_db()
    try:
        assert db.query(User).count() == 2
        assert db.query(BestPracticeTemplate).count() == 2
        checksheet = db.query(Checksheet).one()
        assert checksheet.status == "ACTIVE"
        assert [cp.order for cp in checksheet.checkpoints] == list(range(6))
    finally:
        db.close()


def test_create_user_in_organization(cli_db):
    runner = CliRunner()
    runner.invoke(cli_module.cli, ["init-db"])
    runner.invoke(cli_module.cli, ["seed"])

    result = runner.invoke(cli_module.cli, [
        "create-user", "--email", "Lead@Acme.com", "--password", "supervisor-pass",
        "--role", "supervisor", "--org-slug", "gensheet-demo",
    ])
    assert result.exit_code == 0
    assert "Created user: lead@acme.com (SUPERVISOR)" in result.output

    missing = runner.invoke(cli_module.cli, [
        "create-user", "--email", "x@acme.com", "--password", "password123", "--org-slug", "nope",
    ])
    assert "Organization not found: nope" in missing.output
