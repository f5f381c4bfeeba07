"""
Operation Models
================
Pydantic models for the wallets and deployment settings callers hand to
the pipeline.

Private keys stay out of `repr()` and out of every `to_request_dict()`:
the preparer only ever sees addresses and amounts.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from bundle_pipeline.config.constants import Platform

SecretField = Union[str, List[int]]


class Wallet(BaseModel):
    """
    A locally held wallet.

    Example:
        Wallet(address="7xKX...", privateKey="4wBq...")
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str = ""
    private_key: SecretField = Field(default="", alias="privateKey", repr=False)


class FundedWallet(Wallet):
    """Wallet plus the amount it sends, receives or spends (base currency units)."""
    amount: Union[str, float] = ""

    def to_request_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "amount": self.amount}


class TokenMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    symbol: str = ""
    description: Optional[str] = None
    image_url: str = Field(default="", alias="imageUrl")
    twitter: Optional[str] = None
    telegram: Optional[str] = None
    website: Optional[str] = None

    def to_request_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreateConfig(BaseModel):
    """
    Deployment settings for `/v2/sol/create`.

    Platform-specific options are forwarded only for their own platform.

    Example:
        CreateConfig(
            platform="meteoraDBC",
            token=TokenMetadata(name="Demo", symbol="DMO", imageUrl="https://..."),
            meteoraDBCConfig={"configAddress": METEORA_DBC_CONFIGS["standard"]},
        )
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    platform: str
    token: TokenMetadata
    pump_type: Optional[bool] = Field(default=None, alias="pumpType")
    pump_advanced: Optional[bool] = Field(default=None, alias="pumpAdvanced")
    bonk_type: Optional[Literal["meme", "tech"]] = Field(default=None, alias="bonkType")
    bonk_advanced: Optional[bool] = Field(default=None, alias="bonkAdvanced")
    bonk_config: Optional[Dict[str, Any]] = Field(default=None, alias="bonkConfig")
    meteora_dbc_config: Optional[Dict[str, Any]] = Field(default=None, alias="meteoraDBCConfig")
    meteora_cpamm_config: Optional[Dict[str, Any]] = Field(default=None, alias="meteoraCPAMMConfig")

    def to_request_dict(self, wallets: List[FundedWallet]) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "platform": self.platform,
            "token": self.token.to_request_dict(),
            "wallets": [w.to_request_dict() for w in wallets],
        }

        if self.platform == Platform.PUMPFUN.value:
            if self.pump_type is not None:
                body["pumpType"] = self.pump_type
            if self.pump_advanced is not None:
                body["pumpAdvanced"] = self.pump_advanced
        elif self.platform == Platform.BONK.value:
            if self.bonk_type:
                body["bonkType"] = self.bonk_type
            if self.bonk_advanced is not None:
                body["bonkAdvanced"] = self.bonk_advanced
            if self.bonk_config:
                body["bonkConfig"] = self.bonk_config
        elif self.platform == Platform.METEORA_DBC.value and self.meteora_dbc_config:
            body["meteoraDBCConfig"] = self.meteora_dbc_config
        elif self.platform == Platform.METEORA_CPAMM.value and self.meteora_cpamm_config:
            body["meteoraCPAMMConfig"] = self.meteora_cpamm_config

        return body


# Default pool config addresses
METEORA_DBC_CONFIGS = {
    "standard": "FiENCCbPi3rFh5pW2AJ59HC53yM32qRTLqNKBFbgevo1",
}

METEORA_CPAMM_CONFIGS = {
    "standard": "FzvMYBQ29z2J21QPsABpJYYxQBEKGsxA6w6J2HYceFj8",
}
