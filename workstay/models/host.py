from workstay.models.common import CamelModel


class Host(CamelModel):
    id: str | None = None
    user_id: str
    name: str = ""
    slug: str = ""
    status: str = ""
