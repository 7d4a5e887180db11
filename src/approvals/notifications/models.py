"""Pydantic v2 model for outbound notification emails."""

from pydantic import BaseModel, ConfigDict


class OutboundEmail(BaseModel):
    """A rendered email ready for a transport.

    ``template`` names the template that produced it and is used for
    logging and metrics only.
    """

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    html: str
    template: str
