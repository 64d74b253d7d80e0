"""Configuration management for pipewright."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PIPEWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server (also the SonarQube webhook listener)
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Source
    repo_url: str = ""
    branch: str = "main"
    workspace_dir: Path = Path("./workspace")

    # Layout of the checkout
    backend_dir: str = "backend"
    frontend_dir: str = "frontend"

    # Build
    maven_command: str = "mvn"
    build_skip_tests: bool = True

    # SonarQube
    sonar_host_url: str = "http://localhost:9000"
    sonar_token: str = ""
    sonar_project_key: str = "pipewright-backend"
    sonar_project_name: str | None = None
    sonar_webhook_secret: str | None = None
    quality_gate_timeout: float = 120.0
    quality_gate_mode: str = "webhook"  # webhook | poll
    quality_gate_poll_interval: float = 5.0

    # Docker
    docker_command: str = "docker"
    backend_container: str = "backend"
    backend_image: str = "backend-app"
    backend_host_port: int = 8080
    backend_container_port: int = 8080
    frontend_container: str = "frontend"
    frontend_image: str = "frontend-app"
    frontend_host_port: int = 3000
    frontend_container_port: int = 80
    scope_names_per_run: bool = False

    # Runs
    max_concurrent_runs: int = 1
    command_timeout: float | None = None
    log_tail_lines: int = 50

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)

    @property
    def checkout_dir(self) -> Path:
        """Directory the repository is checked out into."""
        return self.workspace_dir / "checkout"

    def run_checkout_dir(self, run_id: str) -> Path:
        """Checkout directory for one run.

        Runs with scoped names may overlap, so each gets its own directory
        under ``workspace_dir/runs``. Otherwise every run reuses ``checkout_dir``.
        """
        if self.scope_names_per_run:
            return self.workspace_dir / "runs" / run_id
        return self.checkout_dir


# Global settings instance
settings = Settings()
