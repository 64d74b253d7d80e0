"""SonarQube integration: scanner report parsing and Web API client."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from pipewright.errors import PipewrightError
from pipewright.models.quality_gate import GateCondition, QualityGateResult

logger = logging.getLogger(__name__)

REPORT_TASK_PATH = Path("target") / "sonar" / "report-task.txt"

# Compute engine task states that will not change any more
_FINAL_TASK_STATUSES = {"SUCCESS", "FAILED", "CANCELED"}


class SonarQubeError(PipewrightError):
    """Exception raised for SonarQube Web API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


@dataclass
class SonarReport:
    """Contents of the scanner's ``report-task.txt``."""

    project_key: str | None = None
    server_url: str | None = None
    dashboard_url: str | None = None
    ce_task_id: str | None = None
    ce_task_url: str | None = None

    @classmethod
    def parse(cls, text: str) -> "SonarReport":
        values: dict[str, str] = {}
        for line in text.splitlines():
            key, sep, value = line.partition("=")
            if sep:
                values[key.strip()] = value.strip()
        return cls(
            project_key=values.get("projectKey"),
            server_url=values.get("serverUrl"),
            dashboard_url=values.get("dashboardUrl"),
            ce_task_id=values.get("ceTaskId"),
            ce_task_url=values.get("ceTaskUrl"),
        )

    @classmethod
    def load(cls, project_dir: Path) -> "SonarReport | None":
        """Read the report left by the scanner, if any."""
        path = project_dir / REPORT_TASK_PATH
        if not path.exists():
            return None
        return cls.parse(path.read_text(encoding="utf-8"))


class SonarQubeClient:
    """Client for the SonarQube Web API.

    Used by the ``poll`` quality gate mode, where no webhook listener is
    reachable from the SonarQube server.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        poll_interval: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.poll_interval = poll_interval

    def _client(self) -> httpx.AsyncClient:
        # SonarQube takes the token as the basic-auth user with an empty password
        auth = (self.token, "") if self.token else None
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, auth=auth)

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await client.get(path, params=params)
        except httpx.RequestError as e:
            raise SonarQubeError(f"Failed to connect to SonarQube: {e}") from e

        if response.status_code != 200:
            raise SonarQubeError(
                f"SonarQube returned error: {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise SonarQubeError(f"SonarQube returned invalid JSON for {path}") from e

    async def get_task(self, task_id: str) -> dict[str, Any]:
        """Fetch a compute engine task (``/api/ce/task``)."""
        async with self._client() as client:
            data = await self._get(client, "/api/ce/task", {"id": task_id})
        return data.get("task", {})

    async def get_gate_status(self, analysis_id: str) -> dict[str, Any]:
        """Fetch the gate status of an analysis (``/api/qualitygates/project_status``)."""
        async with self._client() as client:
            data = await self._get(
                client, "/api/qualitygates/project_status", {"analysisId": analysis_id}
            )
        return data.get("projectStatus", {})

    async def wait_for_gate(self, task_id: str) -> QualityGateResult:
        """Poll until the analysis task finishes, then read its gate status.

        Has no deadline of its own; callers bound it with a timeout.
        """
        while True:
            task = await self.get_task(task_id)
            status = task.get("status", "PENDING")
            if status in _FINAL_TASK_STATUSES:
                break
            logger.debug(f"Analysis task {task_id} is {status}, waiting")
            await asyncio.sleep(self.poll_interval)

        if status != "SUCCESS":
            return QualityGateResult(
                passed=False,
                status="ERROR",
                analysed_at=task.get("executedAt"),
                project_key=task.get("componentKey"),
                task_id=task_id,
            )

        analysis_id = task.get("analysisId")
        if not analysis_id:
            raise SonarQubeError(f"Analysis task {task_id} finished without an analysis id", details=task)
        project_status = await self.get_gate_status(analysis_id)
        gate_status = project_status.get("status", "NONE")
        conditions = [
            GateCondition(
                metric=c.get("metricKey", ""),
                operator=c.get("comparator"),
                status=c.get("status", ""),
                value=c.get("actualValue"),
                errorThreshold=c.get("errorThreshold"),
            )
            for c in project_status.get("conditions", [])
        ]
        return QualityGateResult(
            passed=gate_status == "OK",
            status=gate_status,
            analysed_at=task.get("executedAt"),
            project_key=task.get("componentKey"),
            task_id=task_id,
            conditions=conditions,
        )
