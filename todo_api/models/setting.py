from sqlmodel import SQLModel, Field


class Setting(SQLModel, table=True):
    """Client preference stored as text, last write wins."""

    __tablename__ = "settings"

    key: str = Field(primary_key=True)
    value: str | None = Field(default=None)
