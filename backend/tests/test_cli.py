"""
CLI bootstrap commands.
"""

from garment_erp.extensions import db
from garment_erp.models import User


class TestSystemInit:

    def test_init_creates_admin_once(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init", "--password", "bootstrap1"])
        assert result.exit_code == 0
        assert "Created admin user: admin" in result.output

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "already exists" in result.output

        db.session.expire_all()
        admins = db.session.query(User).filter_by(username="admin").all()
        assert len(admins) == 1
        assert admins[0].role == "admin"

    def test_reset_requires_confirmation(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["system", "reset-db"])
        assert result.exit_code != 0
        assert "--yes" in result.output


class TestUsersCommands:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create",
            "--username", "packer",
            "--email", "packer@fulai.com",
            "--password", "packer1",
        ])
        assert result.exit_code == 0
        assert "Created user packer" in result.output

        result = runner.invoke(args=["users", "list"])
        assert result.exit_code == 0
        assert "packer@fulai.com" in result.output

    def test_create_rejects_duplicate(self, app, regular_user):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--username", "worker",
            "--email", "another@fulai.com",
            "--password", "secret1",
        ])
        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_list_empty(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["users", "list"])
        assert "No users found" in result.output
