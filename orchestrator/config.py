"""
Configuration management for the orchestrator module.
"""

from dataclasses import dataclass, asdict

from utils.config import Config
from .constants import ConfigDefaults, ProducerBackends
from .error_handler import ConfigurationError

MAX_PROOF_DEPTH_LIMIT = 100


@dataclass
class OrchestratorConfig:
    """
    Configuration for the QueryOrchestrator and its components.

    Centralizes all configuration options to improve maintainability
    and make the system more testable.
    """

    # Core settings
    verbose: bool = ConfigDefaults.VERBOSE
    max_query_length: int = ConfigDefaults.MAX_QUERY_LENGTH

    # Deterministic evaluation
    max_proof_depth: int = ConfigDefaults.MAX_PROOF_DEPTH
    float_epsilon: float = ConfigDefaults.FLOAT_EPSILON

    # Producer settings
    producer_backend: str = ConfigDefaults.PRODUCER_BACKEND
    model: str = ConfigDefaults.MODEL
    ollama_host: str = ConfigDefaults.OLLAMA_HOST
    temperature: float = ConfigDefaults.TEMPERATURE
    max_tokens: int = ConfigDefaults.MAX_TOKENS
    keep_alive: str = ConfigDefaults.KEEP_ALIVE
    producer_timeout: float = ConfigDefaults.PRODUCER_TIMEOUT
    chunk_timeout: float = ConfigDefaults.CHUNK_TIMEOUT
    max_retries: int = ConfigDefaults.MAX_RETRIES
    retry_delay: float = ConfigDefaults.RETRY_DELAY
    echo_delay: float = ConfigDefaults.ECHO_DELAY

    # Output settings
    append_verification_report: bool = ConfigDefaults.APPEND_VERIFICATION_REPORT

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_config()

    def _validate_config(self):
        """Validate configuration values."""
        if self.max_query_length <= 0:
            raise ConfigurationError("max_query_length must be positive")

        if not 0 < self.max_proof_depth <= MAX_PROOF_DEPTH_LIMIT:
            raise ConfigurationError(f"max_proof_depth must be between 1 and {MAX_PROOF_DEPTH_LIMIT}")

        if self.float_epsilon <= 0:
            raise ConfigurationError("float_epsilon must be positive")

        valid_backends = {backend.value for backend in ProducerBackends}
        if self.producer_backend not in valid_backends:
            raise ConfigurationError(
                f"producer_backend must be one of {sorted(valid_backends)}, got {self.producer_backend!r}"
            )

        if not self.model:
            raise ConfigurationError("model must not be empty")

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError("temperature must be between 0.0 and 2.0")

        if self.max_tokens <= 0:
            raise ConfigurationError("max_tokens must be positive")

        if self.producer_timeout <= 0:
            raise ConfigurationError("producer_timeout must be positive")

        if self.chunk_timeout <= 0:
            raise ConfigurationError("chunk_timeout must be positive")

        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative")

        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay must be non-negative")

        if self.echo_delay < 0:
            raise ConfigurationError("echo_delay must be non-negative")

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'OrchestratorConfig':
        """Create configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_env(cls, **overrides) -> 'OrchestratorConfig':
        """
        Create configuration from AXIOM_* environment variables (.env files included).

        Keyword overrides win over the environment.
        """
        values = {
            'verbose': Config.get_bool('AXIOM_VERBOSE', ConfigDefaults.VERBOSE),
            'max_query_length': Config.get_int('AXIOM_MAX_QUERY_LENGTH', ConfigDefaults.MAX_QUERY_LENGTH),
            'max_proof_depth': Config.get_int('AXIOM_MAX_PROOF_DEPTH', ConfigDefaults.MAX_PROOF_DEPTH),
            'float_epsilon': Config.get_float('AXIOM_FLOAT_EPSILON', ConfigDefaults.FLOAT_EPSILON),
            'producer_backend': Config.get_env_var('AXIOM_PRODUCER_BACKEND', ConfigDefaults.PRODUCER_BACKEND).lower(),
            'model': Config.get_env_var('AXIOM_MODEL', ConfigDefaults.MODEL),
            'ollama_host': Config.get_env_var('OLLAMA_HOST', ConfigDefaults.OLLAMA_HOST),
            'temperature': Config.get_float('AXIOM_TEMPERATURE', ConfigDefaults.TEMPERATURE),
            'max_tokens': Config.get_int('AXIOM_MAX_TOKENS', ConfigDefaults.MAX_TOKENS),
            'keep_alive': Config.get_env_var('AXIOM_KEEP_ALIVE', ConfigDefaults.KEEP_ALIVE),
            'producer_timeout': Config.get_float('AXIOM_PRODUCER_TIMEOUT', ConfigDefaults.PRODUCER_TIMEOUT),
            'chunk_timeout': Config.get_float('AXIOM_CHUNK_TIMEOUT', ConfigDefaults.CHUNK_TIMEOUT),
            'max_retries': Config.get_int('AXIOM_MAX_RETRIES', ConfigDefaults.MAX_RETRIES),
            'retry_delay': Config.get_float('AXIOM_RETRY_DELAY', ConfigDefaults.RETRY_DELAY),
            'echo_delay': Config.get_float('AXIOM_ECHO_DELAY', ConfigDefaults.ECHO_DELAY),
            'append_verification_report': Config.get_bool(
                'AXIOM_APPEND_VERIFICATION_REPORT', ConfigDefaults.APPEND_VERIFICATION_REPORT
            ),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return asdict(self)

    def __str__(self) -> str:
        return f"OrchestratorConfig({self.to_dict()})"
