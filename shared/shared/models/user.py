from pydantic import BaseModel, ConfigDict


class CurrentUser(BaseModel):
    """Signed-in user context handed over by the auth layer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    email: str | None = None
    access_token: str | None = None
