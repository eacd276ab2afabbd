"""Order-creation payloads handed to the execution system."""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class OrderPayload:
    sequence: int
    owner: str
    recipient: str
    input_token: str
    output_token: str
    amount_in: int
    condition_token: Optional[str] = None
    base_asset: Optional[str] = None
    target_price: Optional[str] = None
    direction: Optional[str] = None
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    description: Optional[str] = None
    strategy_id: Optional[str] = None
    strategy_type: Optional[str] = None
    strategy_size: Optional[int] = None
    strategy_position: Optional[int] = None

    def to_body(self) -> Dict[str, object]:
        """Request body with only the fields that are set."""

        body: Dict[str, object] = {
            "owner": self.owner,
            "recipient": self.recipient,
            "inputToken": self.input_token,
            "outputToken": self.output_token,
            "amountIn": str(self.amount_in),
        }
        optional = {
            "conditionToken": self.condition_token,
            "baseAsset": self.base_asset,
            "targetPrice": self.target_price,
            "direction": self.direction,
            "validFrom": self.valid_from,
            "validTo": self.valid_to,
            "description": self.description,
            "strategyId": self.strategy_id,
            "strategyType": self.strategy_type,
            "strategySize": self.strategy_size,
            "strategyPosition": self.strategy_position,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        return body
