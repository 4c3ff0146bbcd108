#!/usr/bin/env python3
"""
Configuration for the Quotation Parser.

Values come from the environment (a local .env file is loaded first).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8000"


@dataclass(frozen=True)
class CompanyProfile:
    """Company block printed in the document footer."""
    name: str = "IMPAG"
    address: str = "Calle José Ramón Valdez 404, Nuevo Ideal, Durango, México C.P 34410"
    phone: str = "677 119 77 37"
    email: str = "impaqtodoparaelcampo@gmail.com"


@dataclass(frozen=True)
class BankDetails:
    """Payment details printed at the bottom of customer quotations."""
    bank_name: str = ""
    account_holder: str = ""
    account_number: str = ""
    clabe: str = ""

    @property
    def is_configured(self) -> bool:
        return any((self.bank_name, self.account_holder, self.account_number, self.clabe))


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: Optional[str] = None
    api_timeout: float = 30.0
    poll_interval: float = 2.0
    poll_timeout: float = 90.0
    company: CompanyProfile = field(default_factory=CompanyProfile)
    bank: BankDetails = field(default_factory=BankDetails)

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from QUOTATION_* environment variables."""
        if load_env_file:
            load_dotenv()

        defaults = CompanyProfile()
        company = CompanyProfile(
            name=os.getenv("QUOTATION_COMPANY_NAME", defaults.name),
            address=os.getenv("QUOTATION_COMPANY_ADDRESS", defaults.address),
            phone=os.getenv("QUOTATION_COMPANY_PHONE", defaults.phone),
            email=os.getenv("QUOTATION_COMPANY_EMAIL", defaults.email),
        )
        bank = BankDetails(
            bank_name=os.getenv("QUOTATION_BANK_NAME", ""),
            account_holder=os.getenv("QUOTATION_BANK_ACCOUNT_HOLDER", ""),
            account_number=os.getenv("QUOTATION_BANK_ACCOUNT", ""),
            clabe=os.getenv("QUOTATION_BANK_CLABE", ""),
        )

        return cls(
            api_base_url=os.getenv("QUOTATION_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            api_token=os.getenv("QUOTATION_API_TOKEN") or None,
            api_timeout=_float_env("QUOTATION_API_TIMEOUT", 30.0),
            poll_interval=_float_env("QUOTATION_POLL_INTERVAL", 2.0),
            poll_timeout=_float_env("QUOTATION_POLL_TIMEOUT", 90.0),
            company=company,
            bank=bank,
        )


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}; using {default}")
        return default
    if parsed <= 0:
        logger.warning(f"{name} must be positive; using {default}")
        return default
    return parsed
