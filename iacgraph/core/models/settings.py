"""
Settings model — loaded from iacgraph.yml.

Relative paths are resolved by the loader against the directory that
holds the config file, so the same file works from any cwd.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class Settings(BaseModel):
    """Where generators live, how to run them, and where output goes."""

    # Generators
    generators_dir: Path = Path("generators")
    runner: list[str] = Field(default_factory=lambda: ["bun", "run"])
    provider_generator: str = "generateTerraform.ts"
    module_generator: str = "module/{provider}/generate{name}Terraform.ts"

    # Directories
    watch_root: Path = Path(".watch")
    output_dir: Path = Path("output")
    merged_file: str = "generatedFile.tf"
    artifact_extension: str = ".tf"

    # Time limits (seconds)
    step_timeout: float = 300.0
    start_timeout: float = 30.0
    poll_interval: float = 1.0

    server: ServerSettings = Field(default_factory=ServerSettings)

    def resolve_paths(self, base: Path) -> Settings:
        """Return a copy with every relative directory anchored at ``base``."""
        updates = {}
        for key in ("generators_dir", "watch_root", "output_dir"):
            value: Path = getattr(self, key)
            if not value.is_absolute():
                updates[key] = (base / value).resolve()
        return self.model_copy(update=updates)
