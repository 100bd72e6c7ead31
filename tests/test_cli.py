"""Tests for the CLI interface."""
import runpy

import pytest
import sh
from typer.testing import CliRunner
from unittest.mock import patch, MagicMock

from wpprovision.cli import app
from wpprovision.steps import Stage

runner = CliRunner()

ENVIRON = {
    "APP_DOCROOT": "/usr/share/nginx/html",
    "WORDPRESS_DB_NAME": "wordpress",
    "WORDPRESS_DB_USER": "wp",
    "WORDPRESS_DB_PASSWORD": "s3cret",
    "WORDPRESS_DB_HOST": "mysql",
    "NGINX_SERVER_NAME": "example.com",
    "WORDPRESS_ADMIN": "admin",
    "WORDPRESS_ADMIN_PASSWORD": "hunter2",
    "WORDPRESS_ADMIN_EMAIL": "admin@example.com",
}


@pytest.fixture(autouse=True)
def environ():
    with patch.dict('os.environ', ENVIRON, clear=True):
        yield


def test_cli_help():
    """Test CLI help command."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "provisioning tool" in result.stdout.lower()
    assert "--dry-run" in result.stdout.lower()
    assert "--no-tls" in result.stdout.lower()


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_install_default(mock_provision, mock_is_root):
    """Test a default run provisions with settings from the environment."""
    mock_is_root.return_value = True
    mock_provision.return_value = Stage.DONE

    result = runner.invoke(app, [])

    assert result.exit_code == 0
    settings = mock_provision.call_args[0][0]
    assert settings.docroot == "/usr/share/nginx/html"
    assert settings.tls_enabled is True
    assert mock_provision.call_args[1] == {"dry_run": False}
    assert "✅ Provisioning complete!" in result.stdout


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_install_already_provisioned(mock_provision, mock_is_root):
    mock_is_root.return_value = True
    mock_provision.return_value = Stage.SKIPPED

    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "already provisioned" in result.stdout


@patch('wpprovision.utils.is_root')
def test_install_requires_root(mock_is_root):
    """Test install fails when not root and not a dry run."""
    mock_is_root.return_value = False

    result = runner.invoke(app, [])

    assert result.exit_code == 1
    assert "root" in result.stdout.lower()


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_dry_run_no_root_required(mock_provision, mock_is_root):
    mock_is_root.return_value = False
    mock_provision.return_value = Stage.DONE

    result = runner.invoke(app, ["--dry-run"])

    assert result.exit_code == 0
    assert mock_provision.call_args[1] == {"dry_run": True}


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_overrides(mock_provision, mock_is_root):
    mock_is_root.return_value = True
    mock_provision.return_value = Stage.DONE

    result = runner.invoke(app, ["--docroot", "/srv/site", "--no-tls"])

    assert result.exit_code == 0
    settings = mock_provision.call_args[0][0]
    assert settings.docroot == "/srv/site"
    assert settings.tls_enabled is False


@patch('wpprovision.utils.setup_logging')
@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_install_verbose(mock_provision, mock_is_root, mock_logging):
    """Test install with --verbose option."""
    mock_is_root.return_value = True
    mock_provision.return_value = Stage.DONE

    result = runner.invoke(app, ["--verbose"])

    assert result.exit_code == 0
    mock_logging.assert_called_once_with(True)


@patch('wpprovision.steps.provision_site')
def test_missing_settings(mock_provision):
    with patch.dict('os.environ', {}, clear=True):
        result = runner.invoke(app, ["--dry-run"])

    assert result.exit_code == 1
    assert "WORDPRESS_DB_NAME" in result.output
    mock_provision.assert_not_called()


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_command_failure_exits_non_zero(mock_provision, mock_is_root):
    """Test a failed WP-CLI command ends the run with its exit status."""
    mock_is_root.return_value = True
    mock_provision.side_effect = sh.ErrorReturnCode_1("/usr/bin/wp core install", b"", b"Error")

    result = runner.invoke(app, [])

    assert result.exit_code == 1
    assert "Command failed" in result.output
    assert "/usr/bin/wp core install" in result.output


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_filesystem_failure_exits_non_zero(mock_provision, mock_is_root):
    mock_is_root.return_value = True
    mock_provision.side_effect = PermissionError(13, "Permission denied", "/usr/share/nginx/html")

    result = runner.invoke(app, [])

    assert result.exit_code == 1
    assert "Permission denied" in result.output


@patch('wpprovision.utils.is_root')
@patch('wpprovision.steps.provision_site')
def test_docroot_option_replaces_missing_variable(mock_provision, mock_is_root):
    """Test --docroot satisfies APP_DOCROOT when it is unset."""
    mock_is_root.return_value = True
    mock_provision.return_value = Stage.DONE
    environ = {k: v for k, v in ENVIRON.items() if k != "APP_DOCROOT"}

    with patch.dict('os.environ', environ, clear=True):
        result = runner.invoke(app, ["--docroot", "/srv/site"])

    assert result.exit_code == 0
    assert mock_provision.call_args[0][0].docroot == "/srv/site"


@patch('wpprovision.cli.app')
def test_module_entry_point(mock_app):
    """Test `python -m wpprovision` runs the CLI app."""
    runpy.run_module('wpprovision.__main__', run_name='__main__')

    mock_app.assert_called_once_with(prog_name="wp-provision")
