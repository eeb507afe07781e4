"""
Pydantic models for build configuration.
Provides robust validation for the directory layout, tools and dependencies.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

MAVEN_CENTRAL = "https://repo1.maven.org/maven2/"
JITPACK_JUNIT5 = "https://jitpack.io/com/github/junit-team/junit5/"
JUNIT5_JIGSAW_VERSION = "jigsaw-r5.0.0-g8581c50-96"


class Artifact(BaseModel):
    """A downloadable, versioned dependency file."""

    repository: str
    name: str
    version: str
    extension: str = "jar"

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Ensures the repository base is an HTTP(S) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Repository must be an http(s) URL, but got: {v!r}")
        return v

    @field_validator("name", "version", "extension")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Artifact coordinates cannot be empty.")
        if "/" in v:
            raise ValueError(f"Artifact coordinate cannot contain '/': {v!r}")
        return v

    @property
    def file_name(self) -> str:
        return f"{self.name}-{self.version}.{self.extension}"

    @property
    def uri(self) -> str:
        """The well-known `base/artifact/version/artifact-version.ext` location."""
        return "/".join(
            [self.repository.rstrip("/"), self.name, self.version, self.file_name]
        )


def default_artifacts() -> list[Artifact]:
    """The JUnit 5 platform and its API dependencies, in resolution order."""
    artifacts = [
        Artifact(
            repository=MAVEN_CENTRAL + "org/apiguardian",
            name="apiguardian-api",
            version="1.0.0",
        ),
        Artifact(
            repository=MAVEN_CENTRAL + "org/opentest4j",
            name="opentest4j",
            version="1.0.0",
        ),
    ]
    for name in (
        "junit-jupiter-api",
        "junit-jupiter-engine",
        "junit-platform-commons",
        "junit-platform-console",
        "junit-platform-engine",
        "junit-platform-launcher",
    ):
        artifacts.append(
            Artifact(
                repository=JITPACK_JUNIT5, name=name, version=JUNIT5_JIGSAW_VERSION
            )
        )
    return artifacts


class BuildConfig(BaseModel):
    """A validated configuration model for a build."""

    # Directory layout
    deps_dir: Path = Path("deps")
    source_dir: Path = Path("src")
    output_dir: Path = Path("mods")
    source_extension: str = ".java"

    # Tools
    compiler: str = "javac"
    test_runner: str = "java"
    runner_logging_config: str = "logging.properties"
    launcher_module: str = "org.junit.platform.console"

    # Dependencies
    artifacts: list[Artifact] = Field(default_factory=default_artifacts)

    # Behavior
    dry_run: bool = False

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("deps_dir", "source_dir", "output_dir")
    @classmethod
    def validate_layout_dir(cls, v: Path) -> Path:
        """Layout directories are relative to the working directory."""
        if v.anchor:
            raise ValueError(f"Layout directory must be relative, but got: {v}")
        if ".." in v.parts:
            raise ValueError(f"Layout directory cannot contain '..': {v}")
        if str(v) in ("", "."):
            raise ValueError("Layout directory cannot be the working directory.")
        return v

    @field_validator("source_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(
                f"Source extension must start with '.', but got: {v!r}"
            )
        return v

    @field_validator("compiler", "test_runner", "launcher_module")
    @classmethod
    def validate_tool_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Tool and module names cannot be empty.")
        return v

    @property
    def main_source(self) -> Path:
        return self.source_dir / "main"

    @property
    def test_source(self) -> Path:
        return self.source_dir / "test"

    @property
    def user_source(self) -> Path:
        return self.source_dir / "user"

    @property
    def main_target(self) -> Path:
        return self.output_dir / "main"

    @property
    def test_target(self) -> Path:
        return self.output_dir / "test"

    @property
    def user_target(self) -> Path:
        return self.output_dir / "user"

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns the scalar keys that are expected in the INI file's DEFAULT section."""
        internal_fields = {"artifacts", "dry_run"}
        return {key for key in cls.model_fields if key not in internal_fields}
