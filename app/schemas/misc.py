# app/schemas/misc.py
from typing import Optional

from pydantic import BaseModel


class Message(BaseModel):
    """
    Plain acknowledgement returned by write endpoints that have no body of
    their own, e.g. deletes. `code` names the unit the message is about.
    """

    message: str
    code: Optional[str] = None
