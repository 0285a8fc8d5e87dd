"""Configuration management using pydantic-settings."""

import re
from enum import Enum

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class SearchField(BaseModel):
    """A searchable field as configured for the map."""

    field: str
    label: str = ""


DEFAULT_IDENTIFIER_FIELD = "PARCELID"
DEFAULT_ADDRESS_FIELD = "PROPERTYADDRESS"

_IDENTIFIER_LABEL = re.compile(r"PARCEL|GPIN|LRSN|PIN", re.IGNORECASE)
_ADDRESS_LABEL = re.compile(r"ADDRESS|SITE|SITUS", re.IGNORECASE)
_ADDRESS_FIELD = re.compile(r"ADDRESS|SITUS", re.IGNORECASE)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Feature service Configuration
    feature_service_url: str = Field(..., description="ArcGIS feature layer URL holding the parcels")
    identifier_field: str | None = Field(None, description="Field holding the parcel identifier")
    address_field: str | None = Field(None, description="Field holding the site address")
    search_fields: list[SearchField] = Field(
        default_factory=list,
        description="Searchable fields; used to find identifier and address fields when not set",
    )

    # Address index Configuration
    address_index_url: str | None = Field(None, description="Feature layer restricted to address points")
    address_index_search_field: str = Field(default="FullAdd", description="Address point field to search")
    address_index_display_field: str | None = Field(None, description="Address point field used as label")
    address_index_exact_match: bool = Field(default=False, description="Match the address exactly")

    # Geocoder Configuration
    geocoder_url: str = Field(
        default="https://geocode.arcgis.com/arcgis/rest/services/World/GeocodeServer",
        description="ArcGIS geocode server URL",
    )

    # LLM Provider Configuration
    llm_provider: LLMProvider = Field(
        default=LLMProvider.GEMINI,
        description="LLM provider used to translate questions into filters",
    )
    system_prompt: str = Field(
        default="",
        description="System instruction for AI query translation; empty disables translation",
    )
    completion_timeout: float = Field(default=30.0, description="Seconds to wait for a completion")
    completion_temperature: float = Field(default=0.1, description="Sampling temperature")
    completion_max_tokens: int = Field(default=1024, description="Maximum output tokens")

    # Google Gemini Configuration
    gemini_api_key: str | None = Field(default=None, description="Google Gemini API key")
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model to use")
    gemini_fallback_model: str | None = Field(
        default="gemini-2.0-flash",
        description="Gemini model retried when the primary model fails",
    )

    # OpenAI Configuration
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model to use")
    openai_fallback_model: str | None = Field(default=None, description="OpenAI fallback model")

    # Anthropic Configuration
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    anthropic_model: str = Field(default="claude-3-5-haiku-20241022", description="Anthropic model to use")
    anthropic_fallback_model: str | None = Field(default=None, description="Anthropic fallback model")

    # Ollama Configuration
    ollama_host: str = Field(default="http://localhost:11434", description="Ollama API host URL")
    ollama_model: str = Field(default="llama3.2", description="Ollama model to use")
    ollama_fallback_model: str | None = Field(default=None, description="Ollama fallback model")

    # Session Configuration
    session_memory_size: int = Field(default=10, description="Searches remembered per session")
    max_sessions: int = Field(default=1000, description="Sessions kept before the oldest is dropped")

    # Application Configuration
    web_host: str = Field(default="0.0.0.0", description="Web server bind address")
    web_port: int = Field(default=3000, description="Web server port")
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )

    def resolve_field_names(self) -> tuple[str, str]:
        """Get the identifier and address field names.

        Explicit settings win; otherwise the configured search fields are
        scanned by label and name, falling back to the defaults.

        Returns:
            Tuple of (identifier_field, address_field)
        """
        identifier_field = self.identifier_field
        address_field = self.address_field

        if identifier_field is None:
            match = next(
                (
                    f
                    for f in self.search_fields
                    if _IDENTIFIER_LABEL.search(f.label) or _IDENTIFIER_LABEL.search(f.field)
                ),
                None,
            )
            identifier_field = match.field if match else DEFAULT_IDENTIFIER_FIELD

        if address_field is None:
            match = next(
                (
                    f
                    for f in self.search_fields
                    if _ADDRESS_LABEL.search(f.label) or _ADDRESS_FIELD.search(f.field)
                ),
                None,
            )
            address_field = match.field if match else DEFAULT_ADDRESS_FIELD

        return identifier_field, address_field

    def validate_provider_config(self) -> None:
        """Validate that required API keys are set for the selected provider."""
        if self.llm_provider == LLMProvider.GEMINI and not self.gemini_api_key:
            raise ValueError("Gemini API key is required when using Gemini provider")
        elif self.llm_provider == LLMProvider.OPENAI and not self.openai_api_key:
            raise ValueError("OpenAI API key is required when using OpenAI provider")
        elif self.llm_provider == LLMProvider.ANTHROPIC and not self.anthropic_api_key:
            raise ValueError("Anthropic API key is required when using Anthropic provider")


# Global settings instance - lazy loaded
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
