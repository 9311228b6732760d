"""Configuration management for the command-line converter."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .defaults import get_config


@dataclass
class Config:
    """Configuration for one command-line conversion."""

    input_path: Optional[Path]
    output_path: Optional[Path] = None
    x_scopes: bool = False
    verbose: bool = False
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables or a .env file.

        Args:
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            load_dotenv(env_path)

        settings = get_config()
        return cls(
            input_path=Path(settings["INPUT"]) if settings["INPUT"] else None,
            output_path=Path(settings["OUTPUT"]) if settings["OUTPUT"] else None,
            x_scopes=settings["X_SCOPES"],
            verbose=settings["VERBOSE"],
            log_dir=Path(settings["LOG_DIR"]) if settings["LOG_DIR"] else None,
        )

    @classmethod
    def from_args(
        cls,
        input_path: Optional[Path] = None,
        output_path: Optional[Path] = None,
        x_scopes: Optional[bool] = None,
        verbose: Optional[bool] = None,
        env_path: Optional[Path] = None,
    ) -> "Config":
        """
        Create configuration from explicit arguments, falling back to environment.

        Args:
            input_path: WebAssembly module to convert (overrides env)
            output_path: Where to write the source map (overrides env)
            x_scopes: Export the scope tree (overrides env when set)
            verbose: Enable verbose output (overrides env when set)
            env_path: Optional .env file location

        Returns:
            Config object
        """
        config = cls.from_env(env_path)

        if input_path is not None:
            config.input_path = input_path
        if output_path is not None:
            config.output_path = output_path
        if x_scopes:
            config.x_scopes = True
        if verbose:
            config.verbose = True

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.input_path is None:
            raise ValueError("No input module given")

        if not self.input_path.exists():
            raise ValueError(f"Input module not found: {self.input_path}")

        if not self.input_path.is_file():
            raise ValueError(f"Not a file: {self.input_path}")

    def ensure_output_dir(self) -> None:
        """Create the output file's directory if it doesn't exist."""
        if self.output_path is not None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
