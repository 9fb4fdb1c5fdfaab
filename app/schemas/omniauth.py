"""Auth-gateway payload: what an OAuth provider callback hands us."""
from pydantic import BaseModel, Field


class AuthInfo(BaseModel):
    name: str | None = None
    display_name: str | None = None
    nickname: str | None = None
    email: str | None = None
    username: str | None = None
    image: str | None = None
    # Tenant name, only sent by the load balancer
    customer: str | None = None


class AuthPayload(BaseModel):
    provider: str
    uid: str
    info: AuthInfo = Field(default_factory=AuthInfo)

    @classmethod
    def from_raw(cls, auth: dict) -> "AuthPayload":
        """Build from a gateway hash; uid may arrive as a number."""
        data = dict(auth)
        if data.get("uid") is not None:
            data["uid"] = str(data["uid"])
        data["info"] = data.get("info") or {}
        return cls.model_validate(data)
