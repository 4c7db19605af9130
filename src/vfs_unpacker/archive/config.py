"""Configuration schema for the archive unpacker."""

import codecs

from pydantic import BaseModel, Field, ConfigDict, field_validator
from vfs_unpacker.common import LoggingConfig

from .constants import DEFAULT_NAME_ENCODING


class ExtractionConfig(BaseModel):
    """Configuration for archive extraction."""

    model_config = ConfigDict(extra='forbid')

    output_dir: str | None = Field(
        default=None,
        description="Directory to extract into (default: archive name without extension)"
    )
    name_encoding: str = Field(
        default=DEFAULT_NAME_ENCODING,
        description="Codec used to decode entry names"
    )
    verify_extracted_files: bool = Field(
        default=True,
        description="Verify each extracted file against the payload read from the archive"
    )

    @field_validator('name_encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Reject codecs Python does not know."""
        try:
            return codecs.lookup(v).name
        except LookupError:
            raise ValueError(f"unknown encoding: {v}")


class UnpackerConfig(BaseModel):
    """Root configuration for the unpacker."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
