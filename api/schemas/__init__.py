from api.schemas.account import AccountResponse
from api.schemas.common import ErrorResponse
from api.schemas.engine import ActivityEntryResponse, EngineStatus
from api.schemas.market import AnalysisResponse, AssetResponse
from api.schemas.risk import RiskSettingsBody, RiskSettingsResponse
from api.schemas.trades import TradeResponse

__all__ = [
    "AccountResponse",
    "ActivityEntryResponse",
    "AnalysisResponse",
    "AssetResponse",
    "EngineStatus",
    "ErrorResponse",
    "RiskSettingsBody",
    "RiskSettingsResponse",
    "TradeResponse",
]
