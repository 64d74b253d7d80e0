"""pipewright command-line interface with subcommands.

Usage:
    pipewright serve [--host HOST] [--port PORT]
    pipewright run [--branch B] [--repo-url URL] [--gate-mode webhook|poll]
    pipewright stages
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from pipewright.config import Settings, settings
from pipewright.models.pipeline import RunStatus
from pipewright.models.run import PipelineRun, RunTrigger
from pipewright.pipeline.factory import build_stages
from pipewright.pipeline.stages.quality_gate import GATE_MODES
from pipewright.runs.manager import RunManager
from pipewright.services.quality_gate import QualityGateWaiter

logger = logging.getLogger(__name__)

EXIT_CODES = {
    RunStatus.SUCCESS: 0,
    RunStatus.FAILED: 1,
    RunStatus.ABORTED: 2,
}


def _apply_overrides(args: argparse.Namespace) -> Settings:
    """Settings with command-line overrides applied."""
    updates = {}
    for field in ("repo_url", "branch", "host", "port"):
        value = getattr(args, field, None)
        if value is not None:
            updates[field] = value
    return settings.model_copy(update=updates)


# --- serve subcommand ---

def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API server (run triggers and webhook listener)."""
    cfg = _apply_overrides(args)
    cfg.ensure_directories()
    uvicorn.run(
        "pipewright.main:app",
        host=cfg.host,
        port=cfg.port,
        reload=cfg.debug,
    )
    return 0


# --- run subcommand ---

async def cmd_run(args: argparse.Namespace) -> int:
    """Execute one pipeline run in-process."""
    from pipewright.main import create_app

    cfg = _apply_overrides(args)
    cfg.ensure_directories()
    gate_mode = args.gate_mode or cfg.quality_gate_mode

    waiter = QualityGateWaiter(project_key=cfg.sonar_project_key)
    manager = RunManager(cfg, waiter=waiter, stages=build_stages(cfg, waiter, gate_mode=gate_mode))
    run = PipelineRun(
        branch=cfg.branch,
        trigger=RunTrigger.CLI,
        stage_names=[stage.name for stage in manager.stages],
    )

    print(f"Run {run.id}: {cfg.repo_url or '(no repository)'} @ {run.branch}")
    print(f"  Stages: {' -> '.join(run.stage_names)}")
    print(f"  Quality gate: {gate_mode}")

    server = None
    server_task = None
    if gate_mode == "webhook":
        # The SonarQube webhook needs somewhere to land while the run is active
        server = uvicorn.Server(
            uvicorn.Config(create_app(manager), host=cfg.host, port=cfg.port, log_level="warning")
        )
        server_task = asyncio.create_task(server.serve())
        print(f"  Webhook listener: http://{cfg.host}:{cfg.port}/sonarqube-webhook/")

    try:
        await manager.execute(run)
    finally:
        if server is not None:
            server.should_exit = True
            await server_task

    _print_summary(run)
    return EXIT_CODES.get(run.status, 1)


def _print_summary(run: PipelineRun) -> None:
    print()
    for name in run.stage_names:
        result = run.results.get(name)
        if result is None:
            print(f"  [skipped ] {name}")
            continue
        print(f"  [{result.status.value:<8}] {name}: {result.message or ''}")

    print(f"\nRun {run.id} {run.status.value.upper()}")
    if run.status != RunStatus.SUCCESS:
        print(f"  Failed stage: {run.failed_stage}", file=sys.stderr)
        if run.last_log:
            print(f"\n--- {run.failed_stage} log ---\n{run.last_log}", file=sys.stderr)


# --- stages subcommand ---

def cmd_stages(args: argparse.Namespace) -> int:
    """List the configured stages in execution order."""
    for i, stage in enumerate(build_stages(settings, QualityGateWaiter()), 1):
        timeout = f" (timeout {stage.timeout:g}s)" if stage.timeout else ""
        print(f"{i}. {stage.display_name} [{stage.name}]{timeout}")
        if stage.description:
            print(f"   {stage.description}")
    return 0


# --- Main CLI ---

def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="pipewright",
        description="pipewright - build, analyse, gate and deploy",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host", type=str, help=f"Bind address (default: {settings.host})")
    p_serve.add_argument("--port", type=int, help=f"Port (default: {settings.port})")

    # --- run ---
    p_run = subparsers.add_parser("run", help="Execute the pipeline once")
    p_run.add_argument("-b", "--branch", type=str, help=f"Branch to build (default: {settings.branch})")
    p_run.add_argument("--repo-url", type=str, help="Repository URL (default: PIPEWRIGHT_REPO_URL)")
    p_run.add_argument("--gate-mode", choices=GATE_MODES, help="How to obtain the quality gate result")
    p_run.add_argument("--host", type=str, help="Webhook listener bind address")
    p_run.add_argument("--port", type=int, help="Webhook listener port")

    # --- stages ---
    subparsers.add_parser("stages", help="List pipeline stages")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    # Dispatch
    if args.command == "serve":
        sys.exit(cmd_serve(args))
    elif args.command == "run":
        sys.exit(asyncio.run(cmd_run(args)))
    elif args.command == "stages":
        sys.exit(cmd_stages(args))


if __name__ == "__main__":
    main()
