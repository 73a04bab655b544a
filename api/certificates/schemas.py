"""
Pydantic schemas for QR certificate endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CertificateData(BaseModel):
    """
    Inspection certificate fields encoded behind one QR code.

    Only `title` and `client_name` are required; the service rejects blanks
    so the caller gets one readable message for both.
    """

    title: str = Field(default="", max_length=300)
    client_name: str = Field(default="", max_length=300)
    vessel: str = Field(default="", max_length=300)
    quantity: str = Field(default="", max_length=100)
    port_loading: str = Field(default="", max_length=300)
    port_discharging: str = Field(default="", max_length=300)
    wi_number: str = Field(default="", max_length=100)
    certificate_number: str = Field(default="", max_length=100)
    commodity: str = Field(default="", max_length=300)
    ash_content: str = Field(default="", max_length=50)
    total_sulphur: str = Field(default="", max_length=50)
    calorific_value: str = Field(default="", max_length=50)
