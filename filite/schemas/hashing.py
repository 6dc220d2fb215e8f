"""Password hashing parameter schema."""

from pydantic import BaseModel, ConfigDict, Field


class HashParams(BaseModel):
    """Tunable argon2 parameters. ``None`` means the algorithm default.

    Everything except ``secret`` ends up embedded in the encoded hash, so
    verification only needs the secret to be supplied again.
    """

    model_config = ConfigDict(frozen=True)

    hash_length: int | None = Field(None, ge=4)
    salt_length: int | None = Field(None, ge=8)
    lanes: int | None = Field(None, ge=1)
    mem_cost: int | None = Field(None, ge=8)  # KiB
    time_cost: int | None = Field(None, ge=1)
    secret: bytes | None = None
