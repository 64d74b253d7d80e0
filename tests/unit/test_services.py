"""Unit tests for the command-wrapping services."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from pipewright.errors import CommandError, PortInUseError
from pipewright.services.docker import DockerService
from pipewright.services.git import GitService
from pipewright.services.maven import MavenService
from pipewright.services.shell import CommandResult, CommandRunner, tail
from pipewright.services.sonar import SonarQubeClient, SonarQubeError, SonarReport

REPORT_TASK = """\
projectKey=shop-backend
serverUrl=http://sonar.local:9000
serverVersion=10.4.1
dashboardUrl=http://sonar.local:9000/dashboard?id=shop-backend
ceTaskId=AY0tQ1
ceTaskUrl=http://sonar.local:9000/api/ce/task?id=AY0tQ1
"""


def _result(cmd: list[str], returncode: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(command=cmd, returncode=returncode, stdout=stdout, stderr=stderr)


def _mock_runner(*results: CommandResult) -> AsyncMock:
    runner = AsyncMock(spec=CommandRunner)
    runner.run.side_effect = list(results)
    return runner


# ---------------------------------------------------------------------------
# CommandRunner
# ---------------------------------------------------------------------------

class TestCommandRunner:
    @pytest.mark.asyncio
    async def test_captures_output(self):
        result = await CommandRunner().run([sys.executable, "-c", "print('built')"])
        assert result.ok
        assert result.stdout.strip() == "built"

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self):
        cmd = [sys.executable, "-c", "import sys; print('oops', file=sys.stderr); sys.exit(3)"]
        with pytest.raises(CommandError) as exc_info:
            await CommandRunner().run(cmd)
        assert exc_info.value.returncode == 3
        assert "oops" in exc_info.value.output

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_check(self):
        result = await CommandRunner().run([sys.executable, "-c", "raise SystemExit(2)"], check=False)
        assert result.returncode == 2
        assert not result.ok

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        with pytest.raises(CommandError) as exc_info:
            await CommandRunner().run(["pipewright-no-such-tool-xyz"])
        assert exc_info.value.returncode == 127

    @pytest.mark.asyncio
    async def test_timeout(self):
        with pytest.raises(CommandError, match="Timed out"):
            await CommandRunner(timeout=0.2).run([sys.executable, "-c", "import time; time.sleep(5)"])

    def test_timeout_message_names_the_command(self):
        error = CommandError(
            ["mvn", "package"], -1, "Timed out after 5s", message="Timed out after 5s: mvn package"
        )
        assert str(error) == "Timed out after 5s: mvn package"
        assert str(CommandError(["mvn"], 1)) == "Command failed with exit code 1: mvn"

    @pytest.mark.asyncio
    async def test_extra_env(self):
        cmd = [sys.executable, "-c", "import os; print(os.environ['SONAR_TOKEN'])"]
        result = await CommandRunner().run(cmd, env={"SONAR_TOKEN": "squ_abc"})
        assert result.stdout.strip() == "squ_abc"

    def test_tail(self):
        assert tail("a\nb\nc", 2) == "b\nc"
        assert tail("a\nb", 10) == "a\nb"
        assert tail("a", 0) == ""


# ---------------------------------------------------------------------------
# GitService
# ---------------------------------------------------------------------------

class TestGitService:
    @pytest.mark.asyncio
    async def test_branch_exists(self):
        runner = _mock_runner(_result([], stdout="abc123\trefs/heads/main\n"))
        assert await GitService(runner).branch_exists("https://git.example.com/shop.git", "main")

    @pytest.mark.asyncio
    async def test_branch_missing(self):
        runner = _mock_runner(_result([], stdout=""))
        assert not await GitService(runner).branch_exists("https://git.example.com/shop.git", "dev")

    @pytest.mark.asyncio
    async def test_prefix_match_is_not_a_hit(self):
        runner = _mock_runner(_result([], stdout="abc123\trefs/heads/feature/main\n"))
        assert not await GitService(runner).branch_exists("https://git.example.com/shop.git", "main")

    @pytest.mark.asyncio
    async def test_fresh_clone(self, tmp_path: Path):
        dest = tmp_path / "checkout"
        runner = _mock_runner(_result([]), _result([], stdout="deadbeef\n"))

        sha = await GitService(runner).checkout("https://git.example.com/shop.git", "main", dest)

        assert sha == "deadbeef"
        clone_cmd = runner.run.call_args_list[0].args[0]
        assert clone_cmd[:2] == ["git", "clone"]
        assert "--branch" in clone_cmd and "main" in clone_cmd

    @pytest.mark.asyncio
    async def test_existing_checkout_is_reset(self, tmp_path: Path):
        dest = tmp_path / "checkout"
        (dest / ".git").mkdir(parents=True)
        runner = _mock_runner(*[_result([]) for _ in range(5)], _result([], stdout="cafe\n"))

        sha = await GitService(runner).checkout("https://git.example.com/shop.git", "main", dest)

        assert sha == "cafe"
        subcommands = [call.args[0][3] for call in runner.run.call_args_list]
        assert subcommands == ["remote", "fetch", "checkout", "reset", "clean", "rev-parse"]


# ---------------------------------------------------------------------------
# MavenService
# ---------------------------------------------------------------------------

class TestMavenService:
    @pytest.mark.asyncio
    async def test_package_skips_tests(self, tmp_path: Path):
        runner = _mock_runner(_result([]))
        await MavenService(runner).package(tmp_path)
        cmd = runner.run.call_args.args[0]
        assert cmd == ["mvn", "-B", "clean", "package", "-DskipTests"]
        assert runner.run.call_args.kwargs["cwd"] == tmp_path

    @pytest.mark.asyncio
    async def test_package_with_tests(self, tmp_path: Path):
        runner = _mock_runner(_result([]))
        await MavenService(runner).package(tmp_path, skip_tests=False)
        assert "-DskipTests" not in runner.run.call_args.args[0]

    @pytest.mark.asyncio
    async def test_sonar_reads_report_and_hides_token(self, tmp_path: Path):
        report_dir = tmp_path / "target" / "sonar"
        report_dir.mkdir(parents=True)
        (report_dir / "report-task.txt").write_text(REPORT_TASK, encoding="utf-8")
        runner = _mock_runner(_result([]))

        _, report = await MavenService(runner).sonar(
            tmp_path, host_url="http://sonar.local:9000", project_key="shop-backend", token="squ_abc"
        )

        cmd = runner.run.call_args.args[0]
        assert "-Dsonar.projectKey=shop-backend" in cmd
        assert not any("squ_abc" in part for part in cmd)
        assert runner.run.call_args.kwargs["env"] == {"SONAR_TOKEN": "squ_abc"}
        assert report.ce_task_id == "AY0tQ1"

    @pytest.mark.asyncio
    async def test_sonar_without_report(self, tmp_path: Path):
        runner = _mock_runner(_result([]))
        _, report = await MavenService(runner).sonar(
            tmp_path, host_url="http://sonar.local:9000", project_key="shop-backend"
        )
        assert report is None


class TestSonarReport:
    def test_parse(self):
        report = SonarReport.parse(REPORT_TASK)
        assert report.project_key == "shop-backend"
        assert report.dashboard_url == "http://sonar.local:9000/dashboard?id=shop-backend"
        assert report.ce_task_url.endswith("id=AY0tQ1")


# ---------------------------------------------------------------------------
# SonarQubeClient
# ---------------------------------------------------------------------------

class TestSonarQubeClient:
    @pytest.mark.asyncio
    async def test_wait_for_gate_polls_until_done(self):
        client = SonarQubeClient("http://sonar.local:9000", poll_interval=0)
        tasks = [
            {"status": "PENDING"},
            {"status": "IN_PROGRESS"},
            {"status": "SUCCESS", "analysisId": "AN1", "componentKey": "shop-backend",
             "executedAt": "2024-05-02T10:46:28+0000"},
        ]
        gate = {
            "status": "ERROR",
            "conditions": [
                {"status": "ERROR", "metricKey": "new_coverage", "comparator": "LT",
                 "errorThreshold": "80", "actualValue": "12.5"},
            ],
        }

        with patch.object(client, "get_task", new_callable=AsyncMock, side_effect=tasks), \
                patch.object(client, "get_gate_status", new_callable=AsyncMock, return_value=gate) as get_gate:
            result = await client.wait_for_gate("AY0tQ1")

        get_gate.assert_awaited_once_with("AN1")
        assert not result.passed
        assert result.project_key == "shop-backend"
        assert result.failed_conditions[0].metric == "new_coverage"

    @pytest.mark.asyncio
    async def test_failed_task_fails_gate(self):
        client = SonarQubeClient("http://sonar.local:9000", poll_interval=0)
        with patch.object(client, "get_task", new_callable=AsyncMock, return_value={"status": "FAILED"}):
            result = await client.wait_for_gate("AY0tQ1")
        assert not result.passed

    @pytest.mark.asyncio
    async def test_finished_task_without_analysis_id(self):
        client = SonarQubeClient("http://sonar.local:9000", poll_interval=0)
        with patch.object(client, "get_task", new_callable=AsyncMock, return_value={"status": "SUCCESS"}):
            with pytest.raises(SonarQubeError, match="analysis id"):
                await client.wait_for_gate("AY0tQ1")

    @pytest.mark.asyncio
    async def test_server_error_is_sonarqube_error(self):
        client = SonarQubeClient("http://sonar.local:9000")
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="Service Unavailable"))
        with patch.object(
            client,
            "_client",
            return_value=httpx.AsyncClient(base_url=client.base_url, transport=transport),
        ):
            with pytest.raises(SonarQubeError) as exc_info:
                await client.get_task("AY0tQ1")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_get_task_uses_web_api(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/ce/task"
            assert request.url.params["id"] == "AY0tQ1"
            return httpx.Response(200, json={"task": {"id": "AY0tQ1", "status": "SUCCESS"}})

        client = SonarQubeClient("http://sonar.local:9000")
        transport = httpx.MockTransport(handler)
        with patch.object(
            client,
            "_client",
            return_value=httpx.AsyncClient(base_url=client.base_url, transport=transport),
        ):
            task = await client.get_task("AY0tQ1")

        assert task["status"] == "SUCCESS"


# ---------------------------------------------------------------------------
# DockerService
# ---------------------------------------------------------------------------

class TestDockerService:
    @pytest.mark.asyncio
    async def test_remove_existing(self):
        runner = _mock_runner(_result(["docker", "rm", "-f", "backend"], stdout="backend\n"))
        assert await DockerService(runner).remove_container("backend") is True

    @pytest.mark.asyncio
    async def test_remove_missing_is_ignored(self):
        runner = _mock_runner(
            _result(["docker", "rm", "-f", "backend"], 1,
                    stderr="Error response from daemon: No such container: backend")
        )
        assert await DockerService(runner).remove_container("backend") is False

    @pytest.mark.asyncio
    async def test_remove_other_error_raises(self):
        runner = _mock_runner(
            _result(["docker", "rm", "-f", "backend"], 1,
                    stderr="Cannot connect to the Docker daemon")
        )
        with pytest.raises(CommandError):
            await DockerService(runner).remove_container("backend")

    @pytest.mark.asyncio
    async def test_run_container(self):
        runner = _mock_runner(_result([], stdout="f00dcafe1234\n"))
        cid = await DockerService(runner).run_container("backend", "backend-app", 8080, 8080)
        assert cid == "f00dcafe1234"
        cmd = runner.run.call_args.args[0]
        assert cmd == ["docker", "run", "-d", "--name", "backend", "-p", "8080:8080", "backend-app"]

    @pytest.mark.asyncio
    async def test_port_conflict(self):
        runner = _mock_runner(
            _result([], 125, stderr="Bind for 0.0.0.0:8080 failed: port is already allocated."),
            _result(["docker", "rm", "-f", "backend"], stdout="backend\n"),
        )
        with pytest.raises(PortInUseError):
            await DockerService(runner).run_container("backend", "backend-app", 8080, 8080)
        assert runner.run.call_args.args[0] == ["docker", "rm", "-f", "backend"]
