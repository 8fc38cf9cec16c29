"""Tests for the kanto command line."""
from unittest.mock import patch

import pytest
import typer
from rich.console import Console
from typer.testing import CliRunner

from kanto.cli import app
from kanto.cli_secrets_commands import register_secrets_commands
from kanto.core.deployer import Deployer
from kanto.core.validator import Validator
from kanto.services.secrets import SecretStore

from tests.conftest import FakeCipher, FakeDocker

runner = CliRunner()


@pytest.fixture
def fake_backends(monkeypatch):
    """Route CLI-built components to in-memory fakes."""
    fake_cipher = FakeCipher()
    fake_docker = FakeDocker()

    store_init = SecretStore.__init__
    deployer_init = Deployer.__init__
    validator_init = Validator.__init__

    def init_store(self, config, cipher=None):
        store_init(self, config, cipher=fake_cipher)

    def init_deployer(self, config, docker=None, store=None):
        deployer_init(self, config, docker=fake_docker, store=SecretStore(config))

    def init_validator(self, config, docker=None, store=None, which=None):
        validator_init(self, config, docker=fake_docker, store=SecretStore(config),
                       which=lambda binary: f"/usr/bin/{binary}")

    monkeypatch.setattr(SecretStore, "__init__", init_store)
    monkeypatch.setattr(Deployer, "__init__", init_deployer)
    monkeypatch.setattr(Validator, "__init__", init_validator)
    return fake_docker


def _run(project, *args):
    return runner.invoke(app, [*args, "--project-dir", str(project.project_dir)])


class TestHelp:
    """Help output lists every command."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("deploy", "validate", "secrets", "enhance"):
            assert command in result.stdout

    def test_secrets_help(self):
        result = runner.invoke(app, ["secrets", "--help"])

        assert result.exit_code == 0
        for command in ("generate", "encrypt", "decrypt", "edit", "view"):
            assert command in result.stdout


class TestSecretsCommands:
    """kanto secrets ..."""

    def test_generate_then_encrypt_then_view(self, project, fake_backends):
        assert _run(project, "secrets", "generate", "lugia").exit_code == 0
        assert _run(project, "secrets", "encrypt", "lugia").exit_code == 0
        assert not project.plaintext_secrets('lugia').exists()

        result = _run(project, "secrets", "view", "lugia")

        assert result.exit_code == 0
        assert "GRAFANA_ADMIN_PASSWORD=" in result.stdout

    def test_generate_refuses_existing(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")

        result = _run(project, "secrets", "generate", "lugia")

        assert result.exit_code == 1
        assert "Secrets already exist" in result.stdout

    def test_generate_force(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")

        result = _run(project, "secrets", "generate", "lugia", "--force")

        assert result.exit_code == 0

    def test_view_missing_prints_remediation(self, project, fake_backends):
        result = _run(project, "secrets", "view", "lugia")

        assert result.exit_code == 1
        assert "kanto secrets generate lugia" in result.stdout

    def test_edit(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")

        with patch('kanto.services.secrets.store.subprocess.run'):
            result = _run(project, "secrets", "edit", "lugia")

        assert result.exit_code == 0
        assert not project.plaintext_secrets('lugia').exists()

    def test_decrypt(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")

        result = _run(project, "secrets", "decrypt", "lugia")

        assert result.exit_code == 0
        assert project.plaintext_secrets('lugia').exists()

    def test_decrypt_twice_keeps_pending_edits(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")
        _run(project, "secrets", "decrypt", "lugia")
        plaintext = project.plaintext_secrets('lugia')
        plaintext.write_text("GRAFANA_ADMIN_PASSWORD=edited\n")

        result = _run(project, "secrets", "decrypt", "lugia")

        assert result.exit_code == 1
        assert "Plaintext secrets already on disk" in result.stdout
        assert plaintext.read_text() == "GRAFANA_ADMIN_PASSWORD=edited\n"

    def test_registering_twice_keeps_one_command_each(self):
        console = Console()
        first, second = typer.Typer(), typer.Typer()

        register_secrets_commands(first, console)
        register_secrets_commands(second, console)

        group = typer.main.get_group(second)
        secrets_group = group.commands["secrets"]
        assert sorted(secrets_group.commands) == ["decrypt", "edit", "encrypt", "generate", "view"]
        assert len(second.registered_groups[0].typer_instance.registered_commands) == 5


class TestDeployAndValidate:
    """kanto validate / kanto deploy."""

    def test_validate_passes(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")

        result = _run(project, "validate", "lugia")

        assert result.exit_code == 0
        assert "All validations passed" in result.stdout

    def test_validate_fails_without_secrets(self, project, fake_backends):
        result = _run(project, "validate", "lugia")

        assert result.exit_code == 1
        assert "No encrypted secrets found" in result.stdout

    def test_deploy_dry_run(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")

        result = _run(project, "deploy", "lugia", "--dry-run")

        assert result.exit_code == 0
        assert "https://home-lugia.example.com" in result.stdout
        assert fake_backends.mutations == []
        assert project.env_file('lugia').exists()

    def test_deploy_verbose_writes_debug_to_log_file(self, project, fake_backends, tmp_path):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")
        log_file = tmp_path / "deploy.log"

        result = _run(project, "deploy", "lugia", "--dry-run", "--verbose", "--log-file", str(log_file))

        assert result.exit_code == 0
        text = log_file.read_text()
        assert "DEBUG | Running step: validate" in text
        assert "Deploying server: lugia" in text

    def test_deploy_unknown_stack_fails_at_validate(self, project, fake_backends):
        _run(project, "secrets", "generate", "lugia")
        _run(project, "secrets", "encrypt", "lugia")

        result = _run(project, "deploy", "lugia", "--stack", "42-nowhere")

        assert result.exit_code == 1
        assert "'validate'" in result.stdout
        assert fake_backends.calls == []

    def test_deploy_failure_exit_code(self, project, fake_backends):
        result = _run(project, "deploy", "lugia")

        assert result.exit_code == 1
        assert "render-environment" in result.stdout

    def test_project_dir_from_environment(self, project, fake_backends, monkeypatch):
        monkeypatch.setenv("KANTO_PROJECT_DIR", str(project.project_dir))

        result = runner.invoke(app, ["validate", "ghost"])

        assert result.exit_code == 1
        assert "Server configuration not found" in result.stdout


class TestEnhanceCommand:
    """kanto enhance."""

    def test_enhance_dry_run(self, project):
        compose = project.stacks_dir / '00-bifrost' / 'docker-compose.yml'
        before = compose.read_text()

        result = _run(project, "enhance", "--dry-run")

        assert result.exit_code == 0
        assert compose.read_text() == before

    def test_enhance_writes(self, project):
        compose = project.stacks_dir / '00-bifrost' / 'docker-compose.yml'

        result = _run(project, "enhance")

        assert result.exit_code == 0
        assert "monitoring=proxy" in compose.read_text()
