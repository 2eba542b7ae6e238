"""
Unified configuration management with Pydantic validation.
Loads and validates all environment variables.
"""

from pathlib import Path
from typing import List
from dotenv import load_dotenv
from pydantic import Field, field_validator, ValidationError
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """Application configuration with validation."""

    # ========================
    # Inference Provider Configuration
    # ========================
    huggingface_api_key: str = Field(default="", alias="HUGGINGFACE_API_KEY")
    huggingface_api_endpoint: str = Field(default="", alias="HUGGINGFACE_API_ENDPOINT")

    # ========================
    # VLM Model Configuration
    # ========================
    vlm_model: str = Field(
        default="Qwen/Qwen2.5-VL-7B-Instruct",
        alias="VLM_MODEL"
    )
    vlm_temperature: float = Field(default=0.0, alias="VLM_TEMPERATURE")
    vlm_top_p: float = Field(default=0.05, alias="VLM_TOP_P")
    descriptive_max_tokens: int = Field(default=2500, alias="DESCRIPTIVE_MAX_TOKENS")
    checker_max_tokens: int = Field(default=800, alias="CHECKER_MAX_TOKENS")

    # ========================
    # Batch Configuration
    # ========================
    chunk_size: int = Field(default=8, alias="CHUNK_SIZE")
    allow_partial_results: bool = Field(default=False, alias="ALLOW_PARTIAL_RESULTS")

    # ========================
    # File Storage Configuration
    # ========================
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    max_file_size_mb: int = Field(default=10, alias="MAX_FILE_SIZE_MB")
    allowed_extensions: str = Field(
        default="jpg,jpeg,png,bmp,tiff,webp",
        alias="ALLOWED_EXTENSIONS"
    )
    max_image_dimension: int = Field(default=2048, alias="MAX_IMAGE_DIMENSION")

    # ========================
    # Logging Configuration
    # ========================
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # ========================
    # API Configuration
    # ========================
    api_timeout: int = Field(default=60, alias="API_TIMEOUT")
    api_max_retries: int = Field(default=3, alias="API_MAX_RETRIES")
    api_retry_backoff: int = Field(default=2, alias="API_RETRY_BACKOFF")

    # ========================
    # Development Configuration
    # ========================
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ========================
    # Validators
    # ========================

    @field_validator("huggingface_api_key")
    @classmethod
    def validate_hf_key(cls, v: str) -> str:
        """Reject the placeholder token shipped in .env.example."""
        if v == "hf_xxxxxxxxxxxxx":
            raise ValueError(
                "HUGGINGFACE_API_KEY is still the placeholder value. Get one from: "
                "https://huggingface.co/settings/tokens"
            )
        return v

    @field_validator("vlm_temperature", "vlm_top_p")
    @classmethod
    def validate_sampling(cls, v: float, info) -> float:
        """Validate sampling parameters."""
        if not 0 <= v <= 1:
            raise ValueError(f"{info.field_name} must be between 0 and 1")
        return v

    @field_validator(
        "chunk_size",
        "descriptive_max_tokens",
        "checker_max_tokens",
        "api_timeout",
        "api_max_retries",
        "max_image_dimension",
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Validate strictly positive integers."""
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment."""
        valid_envs = ["development", "staging", "production", "test"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of {valid_envs}")
        return v.lower()

    # ========================
    # Helper Properties
    # ========================

    @property
    def allowed_extensions_list(self) -> List[str]:
        """Get allowed extensions as list."""
        return [ext.strip().lower().lstrip(".") for ext in self.allowed_extensions.split(",")]

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def get_upload_dir(self) -> Path:
        """Get upload directory as Path object."""
        path = Path(self.upload_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def get_config() -> Config:
    """
    Load and validate configuration.
    Exits if configuration is invalid.
    """
    try:
        return Config()

    except ValidationError as e:
        print("\n❌ Configuration Error:")
        print("=" * 60)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"\n Field: {field}")
            print(f"  Error: {error['msg']}")
            if "input" in error:
                print(f"  Value: {error['input']}")
        print("\n" + "=" * 60)
        print("\nPlease check your .env file and fix the errors above.")
        print("See .env.example for reference.\n")
        raise SystemExit(1)


# Global configuration instance
config = get_config()
