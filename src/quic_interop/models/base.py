"""Base Pydantic model configuration for interop models.

All models inherit from InteropBaseModel so they share the same behavior:
- Immutability (frozen=True) so outcomes and configuration can be shared
  across worker threads without copying
- Strict validation (extra="forbid") to catch typos in configuration files
"""

from pydantic import BaseModel, ConfigDict


class InteropBaseModel(BaseModel):
    """Base model for all interop entities.

    Example:
        >>> class Sample(InteropBaseModel):
        ...     label: str
        >>> Sample(label="local").label
        'local'
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
    )
