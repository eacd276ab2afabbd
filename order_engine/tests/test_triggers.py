"""Trigger model tests: mode exclusivity, validation, displays and payloads."""

import unittest
from datetime import datetime, timezone
from decimal import Decimal

from order_engine.models import ConditionDirection, PriceCondition, TimeWindow, TriggerSet
from order_engine.planner import PlanValidationError
from order_engine.triggers import (
    TriggerValidationError,
    bump_target,
    condition_payload,
    format_target,
    price_trigger_display,
    ratio_trigger_display,
    require_submittable,
    time_trigger_display,
    trigger_summary,
    validate_triggers,
    with_manual_description,
    with_price_condition,
    with_ratio_condition,
    with_time_window,
    without_condition,
    without_time_window,
)
from token_catalog.models import Token

CHA = Token(contract_id="SP1.charisma-token", symbol="CHA", decimals=6)
SUSDT = Token(contract_id="SP3.token-susdt", symbol="sUSDT", decimals=8)

START = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
END = datetime(2024, 3, 2, 12, 0, tzinfo=timezone.utc)


class TriggerModeTests(unittest.TestCase):
    def test_empty_set_is_manual(self) -> None:
        triggers = TriggerSet()
        self.assertTrue(triggers.is_manual)
        self.assertFalse(triggers.has_price_trigger)
        self.assertFalse(triggers.has_ratio_trigger)
        self.assertFalse(triggers.has_time_trigger)

    def test_selecting_ratio_clears_price_but_keeps_time(self) -> None:
        triggers = with_time_window(TriggerSet(), start=START)
        triggers = with_price_condition(triggers, CHA, "1.25")
        self.assertTrue(triggers.has_price_trigger)

        triggers = with_ratio_condition(triggers, CHA, SUSDT, "0.5")

        self.assertFalse(triggers.has_price_trigger)
        self.assertTrue(triggers.has_ratio_trigger)
        self.assertEqual(triggers.time_window, TimeWindow(start=START))
        self.assertFalse(triggers.is_manual)

    def test_time_only_is_not_manual(self) -> None:
        triggers = with_time_window(TriggerSet(), end=END)
        self.assertFalse(triggers.is_manual)
        self.assertTrue(without_time_window(triggers).is_manual)

    def test_clearing_condition(self) -> None:
        triggers = without_condition(with_price_condition(TriggerSet(), CHA, "2"))
        self.assertTrue(triggers.is_manual)

    def test_unparsable_target_becomes_empty(self) -> None:
        triggers = with_price_condition(TriggerSet(), CHA, "abc")
        self.assertIsNone(triggers.condition.target)

    def test_bump_target(self) -> None:
        triggers = with_price_condition(TriggerSet(), CHA, "2")
        bumped = bump_target(triggers, Decimal("0.05"))
        self.assertEqual(bumped.condition.target, Decimal("2.10"))

    def test_bump_without_target_is_noop(self) -> None:
        triggers = with_price_condition(TriggerSet(), CHA)
        self.assertEqual(bump_target(triggers, Decimal("0.05")), triggers)


class TriggerValidationTests(unittest.TestCase):
    def test_ratio_requires_tokens_and_target(self) -> None:
        errors = validate_triggers(with_ratio_condition(TriggerSet()))
        self.assertIn("Please select a trigger token for ratio trigger", errors)
        self.assertIn("Please select a base token for ratio trigger", errors)
        self.assertIn("Please enter a target price for ratio trigger", errors)

    def test_ratio_tokens_must_differ(self) -> None:
        errors = validate_triggers(with_ratio_condition(TriggerSet(), CHA, CHA, "1"))
        self.assertEqual(errors, ("Ratio trigger token and base token must be different",))

    def test_price_target_must_be_positive(self) -> None:
        errors = validate_triggers(with_price_condition(TriggerSet(), CHA, "-1"))
        self.assertEqual(errors, ("Price trigger target price must be a positive number",))

    def test_time_window_order(self) -> None:
        errors = validate_triggers(with_time_window(TriggerSet(), start=END, end=START))
        self.assertEqual(errors, ("Time trigger end time must be after start time",))

    def test_time_window_mixing_naive_and_aware(self) -> None:
        naive_end = datetime(2024, 3, 2, 12, 0)
        triggers = with_time_window(TriggerSet(), start=START, end=naive_end)

        errors = validate_triggers(triggers)

        self.assertEqual(
            errors, ("Time trigger start and end times must use the same timezone setting",)
        )
        with self.assertRaises(TriggerValidationError):
            require_submittable(triggers)
        self.assertEqual(trigger_summary(triggers)["errors"], list(errors))

    def test_ratio_without_base_has_no_display(self) -> None:
        triggers = with_ratio_condition(TriggerSet(), CHA, None, "0.5")
        self.assertEqual(ratio_trigger_display(triggers), "")

    def test_ratio_and_time_together_are_allowed(self) -> None:
        triggers = with_time_window(with_ratio_condition(TriggerSet(), CHA, SUSDT, "1"), START, END)
        self.assertEqual(validate_triggers(triggers), ())
        require_submittable(triggers)

    def test_price_without_token_not_submittable(self) -> None:
        with self.assertRaises(TriggerValidationError):
            require_submittable(with_price_condition(TriggerSet()))

    def test_validation_error_is_plan_validation_error(self) -> None:
        self.assertTrue(issubclass(TriggerValidationError, PlanValidationError))


class TriggerDisplayTests(unittest.TestCase):
    def test_price_display(self) -> None:
        triggers = with_price_condition(TriggerSet(), CHA, "1.5", ConditionDirection.GTE)
        self.assertEqual(price_trigger_display(triggers), "CHA ≥ 1.5000 USD")

    def test_ratio_display(self) -> None:
        triggers = with_ratio_condition(TriggerSet(), CHA, SUSDT, "0.05", ConditionDirection.LTE)
        self.assertEqual(ratio_trigger_display(triggers), "CHA ≤ 0.05000 sUSDT")

    def test_partial_state_yields_empty_display(self) -> None:
        self.assertEqual(price_trigger_display(with_price_condition(TriggerSet())), "")
        self.assertEqual(price_trigger_display(with_price_condition(TriggerSet(), CHA)), "")
        self.assertEqual(ratio_trigger_display(with_ratio_condition(TriggerSet(), CHA)), "")
        self.assertEqual(price_trigger_display(TriggerSet()), "")

    def test_time_display_variants(self) -> None:
        self.assertEqual(time_trigger_display(TriggerSet()), "")
        self.assertEqual(
            time_trigger_display(with_time_window(TriggerSet())), "Execute immediately"
        )
        self.assertEqual(
            time_trigger_display(with_time_window(TriggerSet(), start=START)),
            "Execute after 2024-03-01 12:00 UTC",
        )
        self.assertEqual(
            time_trigger_display(with_time_window(TriggerSet(), end=END)),
            "Execute until 2024-03-02 12:00 UTC",
        )
        self.assertTrue(
            time_trigger_display(with_time_window(TriggerSet(), START, END)).startswith(
                "Execute between"
            )
        )

    def test_format_target(self) -> None:
        self.assertEqual(format_target(Decimal("0")), "0")
        self.assertEqual(format_target(Decimal("1234.5678")), "1234.57")
        self.assertEqual(format_target(Decimal("0.000123456")), "0.0001235")

    def test_summary_includes_manual_note(self) -> None:
        summary = trigger_summary(with_manual_description(TriggerSet(), "rebalance"))
        self.assertTrue(summary["is_manual"])
        self.assertEqual(summary["manual_description"], "rebalance")


class ConditionPayloadTests(unittest.TestCase):
    def test_price_condition_payload(self) -> None:
        payload = condition_payload(
            with_price_condition(TriggerSet(), CHA, "1.50", ConditionDirection.LTE)
        )
        self.assertEqual(
            payload,
            {
                "conditionToken": CHA.contract_id,
                "baseAsset": None,
                "targetPrice": "1.5",
                "direction": "lt",
            },
        )

    def test_time_only_is_wildcard(self) -> None:
        payload = condition_payload(with_time_window(TriggerSet(), start=START))
        self.assertEqual(payload["conditionToken"], "*")
        self.assertEqual(payload["targetPrice"], "0")
        self.assertEqual(payload["direction"], "gt")

    def test_price_without_token_is_rejected(self) -> None:
        with self.assertRaises(TriggerValidationError):
            condition_payload(with_price_condition(TriggerSet()))

    def test_ratio_without_base_is_rejected(self) -> None:
        with self.assertRaises(TriggerValidationError):
            condition_payload(with_ratio_condition(TriggerSet(), CHA, None, "3"))

    def test_ratio_condition_payload(self) -> None:
        payload = condition_payload(with_ratio_condition(TriggerSet(), CHA, SUSDT, "0.5"))
        self.assertEqual(payload["baseAsset"], SUSDT.contract_id)
        self.assertEqual(payload["targetPrice"], "0.5")

    def test_manual_has_no_condition(self) -> None:
        payload = condition_payload(TriggerSet())
        self.assertIsNone(payload["conditionToken"])

    def test_direct_price_condition(self) -> None:
        triggers = TriggerSet(condition=PriceCondition(token=CHA, target=Decimal("20000")))
        self.assertEqual(condition_payload(triggers)["targetPrice"], "20000")


if __name__ == "__main__":
    unittest.main()
