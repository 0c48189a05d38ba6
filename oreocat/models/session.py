from pydantic import BaseModel


class SessionUser(BaseModel):
    """Identity read from a verified session token.

    Only ``id`` is used server-side, to namespace storage prefixes.
    """

    id: str
    email: str | None = None
    name: str | None = None
    image: str | None = None
