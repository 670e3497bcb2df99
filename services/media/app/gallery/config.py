from pydantic import BaseModel, ConfigDict

from app.config import Settings
from app.gallery.constants import MEDIA_DESTINATION


class GalleryConfig(BaseModel):
    """Explicit configuration for one gallery session."""

    model_config = ConfigDict(frozen=True)

    backend_url: str
    backend_anon_key: str = ""
    relay_url: str = "http://localhost:8005/api/v1/relay"
    public_file_base_url: str = ""
    redis_url: str | None = None
    destination: str = MEDIA_DESTINATION
    request_timeout_secs: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings, *, relay_url: str | None = None) -> "GalleryConfig":
        values = {
            "backend_url": settings.backend_url,
            "backend_anon_key": settings.backend_anon_key,
            "public_file_base_url": settings.b2_public_url,
            "redis_url": settings.redis_url,
        }
        if relay_url is not None:
            values["relay_url"] = relay_url
        return cls(**values)
