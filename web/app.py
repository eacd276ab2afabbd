"""Local-first JSON API over the order planning engine."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from balance_resolver.resolver import BalanceResolver
from balance_resolver.sources import RateQuoteSource, StaticBalanceSource
from order_adapter.gateway import DryRunOrderGateway
from order_adapter.payloads import PayloadError
from order_engine.config import get_settings
from order_engine.models import (
    DCAOrderIntent,
    DCAPlan,
    OrderRequest,
    SandwichOrderIntent,
    SandwichPlan,
    SingleOrderIntent,
    TriggerSet,
    interval_hours_for,
)
from order_engine.planner import (
    OrderPlanner,
    PlanValidationError,
    UnimplementedIntentError,
    project_sandwich,
)
from order_engine.pricing import PriceUnavailableError, StaticPriceSource, resolve_pair_prices
from order_engine.serialization import (
    decimal_text,
    plan_from_dict,
    plan_to_dict,
    triggers_from_dict,
)
from order_engine.triggers import TriggerValidationError, trigger_summary
from order_submission.sequencer import OrderSubmissionSequencer, SubmissionValidationError
from routing.comparator import describe_route, pick_best_route
from routing.models import Quote
from token_catalog.duality import CounterpartIndex
from token_catalog.models import Token

app = FastAPI(title="Order Planner", description="Local-first order planning API")

_STATE: Dict[str, CounterpartIndex] = {"catalog": CounterpartIndex(())}


class TokenInput(BaseModel):
    contract_id: str
    symbol: str
    decimals: Optional[int] = None
    kind: str = "LAYER1"
    base_id: Optional[str] = None
    identifier: Optional[str] = None


class CatalogRequest(BaseModel):
    tokens: List[TokenInput]


class ConditionInput(BaseModel):
    kind: str = "price"
    token: Optional[str] = None
    base_token: Optional[str] = None
    target: Optional[Decimal] = None
    direction: str = "gte"


class TimeWindowInput(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class TriggersInput(BaseModel):
    condition: Optional[ConditionInput] = None
    time_window: Optional[TimeWindowInput] = None
    manual_description: str = ""


class SingleOrderRequest(BaseModel):
    input_token: str
    output_token: str
    amount: Decimal
    triggers: Optional[TriggersInput] = None


class DCARequest(BaseModel):
    input_token: str
    output_token: str
    total_amount: Decimal
    number_of_slices: int
    start_time: datetime
    interval_hours: Optional[Decimal] = None
    frequency: Optional[str] = None
    triggers: Optional[TriggersInput] = None
    strategy_id: Optional[str] = None


class SandwichRequest(BaseModel):
    token_a: str
    token_b: str
    usd_amount: Decimal
    buy_price: Decimal
    sell_price: Decimal
    prices: Dict[str, Decimal]
    watch_token: Optional[str] = None
    base_token: Optional[str] = None
    strategy_id: Optional[str] = None


class TriggerSummaryRequest(BaseModel):
    triggers: TriggersInput


class RouteSelectRequest(BaseModel):
    primary: dict
    alternate: Optional[dict] = None
    force_alternate: bool = False


class RateInput(BaseModel):
    token_in: str
    token_out: str
    rate: Decimal


class BalanceCheckRequest(BaseModel):
    token: str
    amount: Decimal
    owner: str
    holdings: Dict[str, Decimal]
    rates: List[RateInput] = []


class SubmitRequest(BaseModel):
    plan: dict
    owner: str
    fail_at: Optional[int] = None


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_errors(request: Request, exc: Exception):
    message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
    return JSONResponse({"error": str(message)}, status_code=400)


for _exc_class in (
    PayloadError,
    PlanValidationError,
    PriceUnavailableError,
    SubmissionValidationError,
    TriggerValidationError,
    UnimplementedIntentError,
    ValueError,
    KeyError,
):
    app.add_exception_handler(_exc_class, _handle_errors)


@app.post("/api/catalog")
async def load_catalog(payload: CatalogRequest):
    index = CounterpartIndex(Token.from_dict(token.model_dump()) for token in payload.tokens)
    _STATE["catalog"] = index
    return {
        "tokens": len(index),
        "pairs": sum(1 for pair in index.pairs.values() if pair.complete),
    }


@app.get("/api/catalog/{contract_id}/counterparts")
async def counterparts(contract_id: str):
    index = _catalog()
    token = index.require(contract_id)
    pair = index.pair_for(token)
    counterpart = index.counterpart_of(token)
    return {
        "base_id": index.base_id_of(token),
        "layer1": pair.layer1.to_dict() if pair.layer1 else None,
        "subnet": pair.subnet.to_dict() if pair.subnet else None,
        "has_both_versions": pair.complete,
        "counterpart": counterpart.contract_id if counterpart else None,
    }


@app.post("/api/plans/single")
async def plan_single(payload: SingleOrderRequest):
    index = _catalog()
    intent = SingleOrderIntent(
        input_token=index.require(payload.input_token),
        output_token=index.require(payload.output_token),
        amount=payload.amount,
        triggers=_triggers(payload.triggers, index),
    )
    return _plan_response("single", OrderPlanner().plan(intent))


@app.post("/api/plans/dca")
async def plan_dca(payload: DCARequest):
    index = _catalog()
    if payload.interval_hours is not None:
        interval_hours = payload.interval_hours
    else:
        interval_hours = interval_hours_for(payload.frequency or "daily")
    intent = DCAOrderIntent(
        input_token=index.require(payload.input_token),
        output_token=index.require(payload.output_token),
        plan=DCAPlan(
            total_amount=payload.total_amount,
            number_of_slices=payload.number_of_slices,
            interval_hours=interval_hours,
            start_time=payload.start_time,
        ),
        triggers=_triggers(payload.triggers, index),
        strategy_id=payload.strategy_id,
    )
    return _plan_response("dca", OrderPlanner().plan(intent))


@app.post("/api/plans/sandwich")
async def plan_sandwich(payload: SandwichRequest):
    index = _catalog()
    token_a = index.require(payload.token_a)
    token_b = index.require(payload.token_b)
    price_a, price_b = await resolve_pair_prices(
        StaticPriceSource(payload.prices), token_a, token_b, index
    )
    plan = SandwichPlan(
        usd_amount=payload.usd_amount,
        buy_price=payload.buy_price,
        sell_price=payload.sell_price,
    )
    intent = SandwichOrderIntent(
        token_a=token_a,
        token_b=token_b,
        plan=plan,
        token_a_price=price_a,
        token_b_price=price_b,
        watch_token=index.require(payload.watch_token) if payload.watch_token else None,
        base_token=index.require(payload.base_token) if payload.base_token else None,
        strategy_id=payload.strategy_id,
    )
    requests = OrderPlanner().plan(intent)
    response = _plan_response("sandwich", requests)
    projection = project_sandwich(plan, price_a, price_b)
    response["projection"] = {
        "buy_leg_amount": decimal_text(projection.buy_leg_amount),
        "sell_leg_amount": decimal_text(projection.sell_leg_amount),
        "profit": decimal_text(projection.profit),
        "profit_percentage": decimal_text(projection.profit_percentage),
        "spread_percentage": decimal_text(projection.spread_percentage),
    }
    return response


@app.post("/api/triggers/summary")
async def triggers_summary(payload: TriggerSummaryRequest):
    return trigger_summary(_triggers(payload.triggers, _catalog()))


@app.post("/api/routes/select")
async def select_route(payload: RouteSelectRequest):
    primary = Quote.from_dict(payload.primary)
    alternate = Quote.from_dict(payload.alternate) if payload.alternate else None
    chosen = pick_best_route(primary, alternate, force_alternate=payload.force_alternate)
    return {
        "selected": "primary" if chosen is primary else "alternate",
        "quote": chosen.to_dict(),
        "summary": describe_route(chosen).to_dict(),
    }


@app.post("/api/balance/check")
async def balance_check(payload: BalanceCheckRequest):
    index = _catalog()
    settings = get_settings()
    rates = {(rate.token_in, rate.token_out): rate.rate for rate in payload.rates}
    resolver = BalanceResolver(
        index,
        StaticBalanceSource({payload.owner: payload.holdings}),
        RateQuoteSource(rates, index, settings.default_decimals),
        settings=settings,
    )
    result = await resolver.check_balance(
        index.require(payload.token), payload.amount, payload.owner
    )
    return result.to_dict()


@app.post("/api/submit")
async def submit(payload: SubmitRequest):
    requests = plan_from_dict(payload.plan)
    gateway = DryRunOrderGateway(owner=payload.owner, fail_at=payload.fail_at)
    report = await OrderSubmissionSequencer().submit(requests, gateway.create_order)
    output = report.to_dict()
    output["payloads"] = [body.to_body() for body in gateway.submitted]
    return output


def _catalog() -> CounterpartIndex:
    return _STATE["catalog"]


def _triggers(payload: Optional[TriggersInput], index: CounterpartIndex) -> TriggerSet:
    if payload is None:
        return TriggerSet()
    return triggers_from_dict(payload.model_dump(mode="json"), index)


def _plan_response(strategy: str, requests: Tuple[OrderRequest, ...]) -> dict:
    response = {"strategy": strategy}
    response.update(plan_to_dict(requests))
    response["triggers"] = [trigger_summary(request.triggers) for request in requests]
    return response


def _reset_state() -> None:
    _STATE["catalog"] = CounterpartIndex(())
