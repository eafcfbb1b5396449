"""Tests for the run_pipeline CLI entry point."""

import os
from unittest.mock import MagicMock, patch

import pytest

import run_pipeline
from deploy_pipeline.orchestrator import RunStatus

ENV = {
    "NEXUS_URL": "http://nexus:8081",
    "NEXUS_USERNAME": "deployer",
    "NEXUS_PASSWORD": "store-s3cret",
    "ARTIFACT_GROUP_ID": "com.example",
    "ARTIFACT_ID": "app",
    "TOMCAT_URL": "http://tomcat:8080",
    "TOMCAT_USERNAME": "manager",
    "TOMCAT_PASSWORD": "manager-s3cret",
    "GITHUB_RUN_NUMBER": "42",
    "SONAR_HOST_URL": "http://sonar:9000",
}


@pytest.fixture(autouse=True)
def _isolate():
    """Keep .env files, root logging and signal handlers out of the tests."""
    with patch.object(run_pipeline, "load_dotenv"), patch.object(
        run_pipeline, "configure_logging"
    ), patch.object(run_pipeline.signal, "signal") as mock_signal:
        yield mock_signal


def _fake_run(status: RunStatus, exit_code: int) -> MagicMock:
    run = MagicMock()
    run.status = status
    run.exit_code = exit_code
    run.run_number = 42
    run.version = "0.0.42"
    run.commit_ref = "abc123"
    run.steps = []
    return run


class TestMain:
    def test_missing_config_exits_2(self, capsys):
        with patch.dict(os.environ, {}, clear=True):
            assert run_pipeline.main([]) == run_pipeline.EXIT_CONFIG_ERROR
        err = capsys.readouterr().err
        assert "Configuration error" in err

    def test_exit_code_mirrors_run(self):
        with patch.dict(os.environ, ENV, clear=True), patch.object(
            run_pipeline, "DeploymentPipeline"
        ) as mock_cls:
            mock_cls.return_value.run.return_value = _fake_run(RunStatus.FAILED, 1)
            assert run_pipeline.main([]) == 1
        mock_cls.return_value.close.assert_called_once()

    def test_success_prints_summary(self, capsys):
        with patch.dict(os.environ, ENV, clear=True), patch.object(
            run_pipeline, "DeploymentPipeline"
        ) as mock_cls:
            mock_cls.return_value.run.return_value = _fake_run(RunStatus.SUCCESS, 0)
            assert run_pipeline.main([]) == 0
        out = capsys.readouterr().out
        assert "Result: SUCCESS" in out
        assert "version 0.0.42" in out

    def test_cli_overrides_environment(self):
        with patch.dict(os.environ, ENV, clear=True), patch.object(
            run_pipeline, "DeploymentPipeline"
        ) as mock_cls:
            mock_cls.return_value.run.return_value = _fake_run(RunStatus.SUCCESS, 0)
            run_pipeline.main(["--run-number", "7", "--skip-quality-gate"])
        config = mock_cls.call_args.args[0]
        assert config.run_number == 7
        assert config.quality_gate_enabled is False

    def test_redeploy_mode(self, tmp_path):
        archive = tmp_path / "app-0.0.41.war"
        with patch.dict(os.environ, ENV, clear=True), patch.object(
            run_pipeline, "DeploymentPipeline"
        ) as mock_cls:
            pipeline = mock_cls.return_value
            pipeline.run_redeploy.return_value = _fake_run(RunStatus.SUCCESS, 0)
            assert run_pipeline.main(["--redeploy", str(archive)]) == 0
        pipeline.run_redeploy.assert_called_once_with(archive)
        pipeline.run.assert_not_called()

    def test_signals_request_cancellation(self, _isolate):
        with patch.dict(os.environ, ENV, clear=True), patch.object(
            run_pipeline, "DeploymentPipeline"
        ) as mock_cls:
            pipeline = mock_cls.return_value
            pipeline.run.return_value = _fake_run(RunStatus.CANCELLED, 130)
            assert run_pipeline.main([]) == 130

        handler = _isolate.call_args_list[0].args[1]
        handler(run_pipeline.signal.SIGTERM, None)
        pipeline.cancel.assert_called_once()

    def test_pipeline_closed_when_run_raises(self):
        with patch.dict(os.environ, ENV, clear=True), patch.object(
            run_pipeline, "DeploymentPipeline"
        ) as mock_cls:
            pipeline = mock_cls.return_value
            pipeline.run.side_effect = RuntimeError("boom")
            with pytest.raises(RuntimeError):
                run_pipeline.main([])
        pipeline.close.assert_called_once()
