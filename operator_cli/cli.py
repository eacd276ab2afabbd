"""Operator CLI for the order planning engine."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from balance_resolver.resolver import BalanceResolver
from balance_resolver.sources import RateQuoteSource, StaticBalanceSource
from order_adapter.gateway import DryRunOrderGateway
from order_adapter.payloads import PayloadError
from order_engine.config import get_settings
from order_engine.models import (
    ConditionDirection,
    DCAOrderIntent,
    DCAPlan,
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
    parse_datetime,
    parse_decimal,
    plan_from_dict,
    plan_to_dict,
)
from order_engine.triggers import (
    TriggerValidationError,
    trigger_summary,
    with_manual_description,
    with_price_condition,
    with_ratio_condition,
    with_time_window,
)
from order_submission.sequencer import OrderSubmissionSequencer, SubmissionValidationError
from routing.comparator import describe_route, pick_best_route
from routing.models import Quote
from token_catalog.duality import CounterpartIndex
from token_catalog.models import Token

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="order-planner")
    parser.add_argument("--log-level", default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan_parser = subparsers.add_parser("plan")
    plan_sub = plan_parser.add_subparsers(dest="plan_command", required=True)

    plan_single = plan_sub.add_parser("single")
    plan_single.add_argument("--catalog", required=True)
    plan_single.add_argument("--from", dest="from_token", required=True)
    plan_single.add_argument("--to", dest="to_token", required=True)
    plan_single.add_argument("--amount", required=True)
    _add_trigger_args(plan_single)
    plan_single.set_defaults(func=_plan_single)

    plan_dca = plan_sub.add_parser("dca")
    plan_dca.add_argument("--catalog", required=True)
    plan_dca.add_argument("--from", dest="from_token", required=True)
    plan_dca.add_argument("--to", dest="to_token", required=True)
    plan_dca.add_argument("--total", required=True)
    plan_dca.add_argument("--slices", required=True, type=int)
    interval = plan_dca.add_mutually_exclusive_group(required=True)
    interval.add_argument("--interval-hours")
    interval.add_argument("--frequency")
    plan_dca.add_argument("--start", required=True)
    plan_dca.add_argument("--strategy-id")
    _add_trigger_args(plan_dca)
    plan_dca.set_defaults(func=_plan_dca)

    plan_sandwich = plan_sub.add_parser("sandwich")
    plan_sandwich.add_argument("--catalog", required=True)
    plan_sandwich.add_argument("--token-a", required=True)
    plan_sandwich.add_argument("--token-b", required=True)
    plan_sandwich.add_argument("--usd", required=True)
    plan_sandwich.add_argument("--buy-price", required=True)
    plan_sandwich.add_argument("--sell-price", required=True)
    plan_sandwich.add_argument("--price", action="append", default=[])
    plan_sandwich.add_argument("--watch-token")
    plan_sandwich.add_argument("--base-token")
    plan_sandwich.add_argument("--strategy-id")
    plan_sandwich.set_defaults(func=_plan_sandwich)

    submit_parser = subparsers.add_parser("submit")
    submit_parser.add_argument("--plan", required=True)
    submit_parser.add_argument("--owner", required=True)
    submit_parser.add_argument("--fail-at", type=int)
    submit_parser.set_defaults(func=_submit_plan)

    balance_parser = subparsers.add_parser("balance")
    balance_sub = balance_parser.add_subparsers(dest="balance_command", required=True)
    balance_check = balance_sub.add_parser("check")
    balance_check.add_argument("--catalog", required=True)
    balance_check.add_argument("--token", required=True)
    balance_check.add_argument("--amount", required=True)
    balance_check.add_argument("--owner", default="operator")
    balance_check.add_argument("--holding", action="append", default=[])
    balance_check.add_argument("--rate", action="append", default=[])
    balance_check.set_defaults(func=_balance_check)

    route_parser = subparsers.add_parser("route")
    route_sub = route_parser.add_subparsers(dest="route_command", required=True)
    route_pick = route_sub.add_parser("pick")
    route_pick.add_argument("--primary", required=True)
    route_pick.add_argument("--alternate")
    route_pick.add_argument("--force-alternate", action="store_true")
    route_pick.set_defaults(func=_route_pick)

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        return args.func(args)
    except (
        ValueError,
        KeyError,
        OSError,
        PlanValidationError,
        TriggerValidationError,
        UnimplementedIntentError,
        PriceUnavailableError,
        PayloadError,
        SubmissionValidationError,
    ) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"ERROR: {message}", file=sys.stderr)
        return 2


def _configure_logging(level: Optional[str]) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _plan_single(args: argparse.Namespace) -> int:
    index = _load_catalog(args.catalog)
    intent = SingleOrderIntent(
        input_token=_require_token(index, args.from_token),
        output_token=_require_token(index, args.to_token),
        amount=parse_decimal(args.amount, "Amount"),
        triggers=_build_triggers(args, index),
    )
    requests = OrderPlanner().plan(intent)
    _print_plan("single", requests)
    return 0


def _plan_dca(args: argparse.Namespace) -> int:
    index = _load_catalog(args.catalog)
    if args.interval_hours is not None:
        interval_hours = parse_decimal(args.interval_hours, "Interval")
    else:
        interval_hours = interval_hours_for(args.frequency)
    start_time = parse_datetime(args.start)
    intent = DCAOrderIntent(
        input_token=_require_token(index, args.from_token),
        output_token=_require_token(index, args.to_token),
        plan=DCAPlan(
            total_amount=parse_decimal(args.total, "Total amount"),
            number_of_slices=args.slices,
            interval_hours=interval_hours,
            start_time=start_time,
        ),
        triggers=_build_triggers(args, index),
        strategy_id=args.strategy_id,
    )
    requests = OrderPlanner().plan(intent)
    _print_plan("dca", requests)
    return 0


def _plan_sandwich(args: argparse.Namespace) -> int:
    index = _load_catalog(args.catalog)
    token_a = _require_token(index, args.token_a)
    token_b = _require_token(index, args.token_b)
    prices = StaticPriceSource(
        {
            token_id: parse_decimal(price, f"Price of {token_id}")
            for token_id, price in _parse_pairs(args.price, "--price", "TOKEN=USD").items()
        }
    )
    price_a, price_b = asyncio.run(resolve_pair_prices(prices, token_a, token_b, index))

    plan = SandwichPlan(
        usd_amount=parse_decimal(args.usd, "USD amount"),
        buy_price=parse_decimal(args.buy_price, "Buy price"),
        sell_price=parse_decimal(args.sell_price, "Sell price"),
    )
    intent = SandwichOrderIntent(
        token_a=token_a,
        token_b=token_b,
        plan=plan,
        token_a_price=price_a,
        token_b_price=price_b,
        watch_token=_optional_token(index, args.watch_token),
        base_token=_optional_token(index, args.base_token),
        strategy_id=args.strategy_id,
    )
    requests = OrderPlanner().plan(intent)
    projection = project_sandwich(plan, price_a, price_b)
    _print_plan(
        "sandwich",
        requests,
        projection={
            "buy_leg_amount": decimal_text(projection.buy_leg_amount),
            "sell_leg_amount": decimal_text(projection.sell_leg_amount),
            "profit": decimal_text(projection.profit),
            "profit_percentage": decimal_text(projection.profit_percentage),
            "spread_percentage": decimal_text(projection.spread_percentage),
        },
    )
    return 0


def _submit_plan(args: argparse.Namespace) -> int:
    requests = plan_from_dict(_load_json(args.plan))
    gateway = DryRunOrderGateway(owner=args.owner, fail_at=args.fail_at)
    sequencer = OrderSubmissionSequencer(on_progress=_log_progress)
    report = asyncio.run(sequencer.submit(requests, gateway.create_order))

    output = report.to_dict()
    output["payloads"] = [payload.to_body() for payload in gateway.submitted]
    print(json.dumps(output, indent=2))
    return 0 if not report.failed else 1


def _balance_check(args: argparse.Namespace) -> int:
    index = _load_catalog(args.catalog)
    token = _require_token(index, args.token)
    holdings = {
        token_id: parse_decimal(amount, f"Holding {token_id}")
        for token_id, amount in _parse_pairs(args.holding, "--holding", "TOKEN=AMOUNT").items()
    }
    rates = {}
    for pair, rate in _parse_pairs(args.rate, "--rate", "IN:OUT=RATE").items():
        if ":" not in pair:
            raise ValueError("Rate must be formatted as IN:OUT=RATE.")
        token_in, token_out = pair.split(":", 1)
        rates[(token_in, token_out)] = parse_decimal(rate, "Rate")

    resolver = BalanceResolver(
        index,
        StaticBalanceSource({args.owner: holdings}),
        RateQuoteSource(rates, index, get_settings().default_decimals),
    )
    result = asyncio.run(
        resolver.check_balance(token, parse_decimal(args.amount, "Amount"), args.owner)
    )
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def _route_pick(args: argparse.Namespace) -> int:
    primary = Quote.from_dict(_load_json(args.primary))
    alternate = Quote.from_dict(_load_json(args.alternate)) if args.alternate else None
    chosen = pick_best_route(primary, alternate, force_alternate=args.force_alternate)
    print(
        json.dumps(
            {
                "selected": "primary" if chosen is primary else "alternate",
                "quote": chosen.to_dict(),
                "summary": describe_route(chosen).to_dict(),
            },
            indent=2,
        )
    )
    return 0


def _add_trigger_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--price-token")
    parser.add_argument("--ratio-token")
    parser.add_argument("--base-token")
    parser.add_argument("--target")
    parser.add_argument("--direction", default="gte")
    parser.add_argument("--after")
    parser.add_argument("--until")
    parser.add_argument("--description", default="")


def _build_triggers(args: argparse.Namespace, index: CounterpartIndex) -> TriggerSet:
    if args.price_token and args.ratio_token:
        raise ValueError("Choose either a price trigger or a ratio trigger, not both.")

    triggers = TriggerSet()
    direction = ConditionDirection.parse(args.direction)
    if args.price_token:
        triggers = with_price_condition(
            triggers, _require_token(index, args.price_token), args.target, direction
        )
    elif args.ratio_token:
        triggers = with_ratio_condition(
            triggers,
            _require_token(index, args.ratio_token),
            _optional_token(index, args.base_token),
            args.target,
            direction,
        )
    if args.after or args.until:
        triggers = with_time_window(
            triggers, parse_datetime(args.after), parse_datetime(args.until)
        )
    if args.description:
        triggers = with_manual_description(triggers, args.description)

    summary = trigger_summary(triggers)
    if summary["errors"]:
        raise TriggerValidationError(summary["errors"][0])
    return triggers


def _print_plan(strategy: str, requests, projection: Optional[Dict[str, str]] = None) -> None:
    output = {"strategy": strategy}
    output.update(plan_to_dict(requests))
    output["triggers"] = [trigger_summary(request.triggers) for request in requests]
    if projection is not None:
        output["projection"] = projection
    print(json.dumps(output, indent=2))


def _log_progress(outcome) -> None:
    logger.info("Order %d: %s", outcome.sequence, outcome.status.value)


def _load_catalog(path: str) -> CounterpartIndex:
    data = _load_json(path)
    entries = data.get("tokens", []) if isinstance(data, dict) else data
    return CounterpartIndex(Token.from_dict(entry) for entry in entries)


def _load_json(source: str):
    if source == "-":
        return json.loads(sys.stdin.read())
    return json.loads(Path(source).read_text())


def _require_token(index: CounterpartIndex, contract_id: str) -> Token:
    token = index.token(contract_id)
    if token is None:
        raise ValueError(f"Unknown token: {contract_id}")
    return token


def _optional_token(index: CounterpartIndex, contract_id: Optional[str]) -> Optional[Token]:
    if not contract_id:
        return None
    return _require_token(index, contract_id)


def _parse_pairs(values: Iterable[str], flag: str, shape: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for raw in values:
        if "=" not in raw:
            raise ValueError(f"{flag} must be formatted as {shape}.")
        key, value = raw.rsplit("=", 1)
        if not key:
            raise ValueError(f"{flag} needs a token id.")
        pairs[key] = value
    return pairs


if __name__ == "__main__":
    raise SystemExit(main())
