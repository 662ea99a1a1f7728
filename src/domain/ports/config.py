"""Configuration models - one pydantic section per config.toml table."""

from pydantic import BaseModel, ConfigDict


class LLMConfig(BaseModel):
    """OpenAI-compatible completion endpoint and model choice."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    timeout: int = 120
    model: str = "gpt-4.1"  # Coding agent
    summary_model: str = "gpt-4.1-mini"  # Title and response generators
    temperature: float = 0.1
    # Optional: max tokens to generate. None = server/model default.
    max_tokens: int | None = None


class SandboxConfig(BaseModel):
    """Execution environment backend."""

    provider: str = "remote"  # "remote" | "local" (development only)
    template: str = "nextjs-app"
    # Local provider: sandboxes are copied from <templates_dir>/<template>
    templates_dir: str = "templates"
    # Remote sandbox service (provider = "remote")
    api_url: str = "http://localhost:49982"
    api_key: str = ""
    domain: str = "sandbox.localhost"
    timeout: int = 60
    # Per-command timeout inside the sandbox
    command_timeout: int = 300
    preview_port: int = 3000
    url_scheme: str = "https"

    def preview_url_scheme(self) -> str:
        """Local sandboxes serve plain HTTP on localhost."""
        return "http" if self.provider == "local" else self.url_scheme


class AgentConfig(BaseModel):
    """Agent network settings."""

    max_iterations: int = 15  # Router ceiling per workflow run
    history_limit: int = 5  # Prior project messages seeded into the conversation


class JobsConfig(BaseModel):
    """Retry policy for workflow jobs."""

    max_attempts: int = 4
    backoff_min_seconds: float = 1.0
    backoff_max_seconds: float = 30.0
    resume_on_startup: bool = True


class SecurityConfig(BaseModel):
    """Security settings."""

    cors_origins: list[str] = ["http://localhost:3000"]


class PersistenceConfig(BaseModel):
    """Persistence settings."""

    output_dir: str = "output"


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False  # Auto-reload on code changes (development)


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    sandbox: SandboxConfig = SandboxConfig()
    agent: AgentConfig = AgentConfig()
    jobs: JobsConfig = JobsConfig()
    security: SecurityConfig = SecurityConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout. Rotation when file exceeds max_mb.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3
