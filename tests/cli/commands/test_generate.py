from pathlib import Path
from unittest.mock import Mock, patch

from container_helper.cli.commands.generate import generate
from container_helper.services.engine import DockerEngine
from container_helper.utils.config_manager import WizardStateStore


class TestGenerateCommand:
    """Smoke tests for generate command."""

    @patch('container_helper.cli.commands.generate.get_engine')
    def test_generate_to_stdout(self, mock_get_engine, isolated_cli_runner, ssh_config):
        """Test the Dockerfile is printed for a saved configuration."""
        mock_get_engine.return_value = DockerEngine(Mock())
        WizardStateStore(Path(".container-helper")).save_environment_config(ssh_config)

        result = isolated_cli_runner.invoke(generate, [])

        assert result.exit_code == 0
        assert result.output.startswith("FROM alpine:latest\n")
        assert "EXPOSE 2222" in result.output
        assert result.output.endswith('CMD ["/usr/sbin/sshd", "-D"]\n')

    @patch('container_helper.cli.commands.generate.get_engine')
    def test_generate_to_file(self, mock_get_engine, isolated_cli_runner, python_config):
        mock_get_engine.return_value = DockerEngine(Mock())
        WizardStateStore(Path(".container-helper")).save_environment_config(python_config)

        result = isolated_cli_runner.invoke(generate, ['-o', 'Dockerfile'])

        assert result.exit_code == 0
        assert "Dockerfile written to Dockerfile" in result.output
        assert Path("Dockerfile").read_text().startswith("FROM ubuntu:22.04\n")

    @patch('container_helper.cli.commands.generate.get_engine')
    def test_generate_without_languages(self, mock_get_engine, isolated_cli_runner):
        """Test the default configuration is rejected until a language is added."""
        mock_get_engine.return_value = DockerEngine(Mock())

        result = isolated_cli_runner.invoke(generate, [])

        assert result.exit_code == 1
        assert "Generation failed: At least one language is required" in result.output
