"""Smoke tests for the operator CLI."""

import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path

from operator_cli.cli import main

CATALOG = [
    {"contract_id": "SP1.charisma-token", "symbol": "CHA", "decimals": 6, "kind": "LAYER1"},
    {
        "contract_id": "SP1.charisma-token-subnet",
        "symbol": "CHA",
        "decimals": 6,
        "kind": "SUBNET",
        "base_id": "SP1.charisma-token",
    },
    {"contract_id": "SP2.welsh", "symbol": "WELSH", "decimals": 6, "kind": "LAYER1"},
    {
        "contract_id": "SP2.welsh-subnet",
        "symbol": "WELSH",
        "decimals": 6,
        "kind": "SUBNET",
        "base_id": "SP2.welsh",
    },
]

CHA_SUB = "SP1.charisma-token-subnet"
WELSH_SUB = "SP2.welsh-subnet"


class OperatorCliSmokeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.catalog = self._write("catalog.json", CATALOG)

    def _write(self, name, data) -> str:
        path = Path(self._tmp.name) / name
        path.write_text(json.dumps(data))
        return str(path)

    def _run(self, args):
        out_buf = StringIO()
        err_buf = StringIO()
        with redirect_stdout(out_buf), redirect_stderr(err_buf):
            code = main(["--log-level", "WARNING"] + args)
        return code, out_buf.getvalue(), err_buf.getvalue()

    def test_plan_single_outputs_json(self) -> None:
        code, output, _ = self._run(
            [
                "plan",
                "single",
                "--catalog",
                self.catalog,
                "--from",
                CHA_SUB,
                "--to",
                WELSH_SUB,
                "--amount",
                "10",
                "--price-token",
                WELSH_SUB,
                "--target",
                "1.5",
            ]
        )
        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertEqual(payload["strategy"], "single")
        self.assertEqual(len(payload["requests"]), 1)
        self.assertEqual(payload["triggers"][0]["price"], "WELSH ≥ 1.5000 USD")

    def test_plan_dca_slices(self) -> None:
        code, output, _ = self._run(
            [
                "plan",
                "dca",
                "--catalog",
                self.catalog,
                "--from",
                CHA_SUB,
                "--to",
                WELSH_SUB,
                "--total",
                "100",
                "--slices",
                "4",
                "--frequency",
                "daily",
                "--start",
                "2024-01-01T00:00:00+00:00",
            ]
        )
        self.assertEqual(code, 0)
        requests = json.loads(output)["requests"]
        self.assertEqual([request["amount"] for request in requests], ["25"] * 4)
        self.assertEqual(requests[0]["valid_to"], requests[1]["valid_from"])

    def test_plan_sandwich_projection(self) -> None:
        code, output, _ = self._run(
            [
                "plan",
                "sandwich",
                "--catalog",
                self.catalog,
                "--token-a",
                CHA_SUB,
                "--token-b",
                WELSH_SUB,
                "--usd",
                "1000",
                "--buy-price",
                "0.05",
                "--sell-price",
                "0.06",
                "--price",
                "SP1.charisma-token=0.05",
                "--price",
                "SP2.welsh=0.06",
            ]
        )
        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertEqual(len(payload["requests"]), 2)
        self.assertEqual(payload["projection"]["profit"], "200")
        self.assertEqual(payload["requests"][0]["amount"], "20000")
        self.assertEqual(
            [summary["price"] for summary in payload["triggers"]],
            ["WELSH ≥ 0.06000 USD", "WELSH ≤ 0.05000 USD"],
        )

    def test_catalog_entry_without_symbol_is_error(self) -> None:
        broken = self._write("broken.json", [{"contract_id": "SP1.charisma-token"}])
        code, _, err = self._run(
            [
                "plan",
                "single",
                "--catalog",
                broken,
                "--from",
                CHA_SUB,
                "--to",
                WELSH_SUB,
                "--amount",
                "1",
            ]
        )
        self.assertEqual(code, 2)
        self.assertIn("ERROR: Token entry is missing symbol", err)

    def test_mixed_timezone_window_is_error(self) -> None:
        code, _, err = self._run(
            [
                "plan",
                "single",
                "--catalog",
                self.catalog,
                "--from",
                CHA_SUB,
                "--to",
                WELSH_SUB,
                "--amount",
                "1",
                "--after",
                "2024-01-01T00:00:00Z",
                "--until",
                "2024-01-02T00:00:00",
            ]
        )
        self.assertEqual(code, 2)
        self.assertIn("same timezone setting", err)

    def test_balance_check_rejects_negative_amount(self) -> None:
        code, _, err = self._run(
            [
                "balance",
                "check",
                "--catalog",
                self.catalog,
                "--token",
                CHA_SUB,
                "--amount",
                "-5",
            ]
        )
        self.assertEqual(code, 2)
        self.assertIn("Required amount must be positive", err)

    def test_submit_fail_at_reports_skips(self) -> None:
        _, plan_output, _ = self._run(
            [
                "plan",
                "dca",
                "--catalog",
                self.catalog,
                "--from",
                CHA_SUB,
                "--to",
                WELSH_SUB,
                "--total",
                "100",
                "--slices",
                "5",
                "--interval-hours",
                "1",
                "--start",
                "2024-01-01T00:00:00Z",
            ]
        )
        plan_path = self._write("plan.json", json.loads(plan_output))

        code, output, _ = self._run(
            ["submit", "--plan", plan_path, "--owner", "SP9OWNER", "--fail-at", "3"]
        )

        self.assertEqual(code, 1)
        report = json.loads(output)
        self.assertEqual(report["succeeded"], 2)
        self.assertEqual(report["failed"], 1)
        self.assertEqual(report["skipped"], 2)
        self.assertEqual(len(report["payloads"]), 2)
        self.assertEqual(report["payloads"][0]["conditionToken"], "*")

    def test_balance_check(self) -> None:
        code, output, _ = self._run(
            [
                "balance",
                "check",
                "--catalog",
                self.catalog,
                "--token",
                CHA_SUB,
                "--amount",
                "100",
                "--holding",
                f"{CHA_SUB}=30",
                "--holding",
                "SP1.charisma-token=50",
                "--holding",
                f"{WELSH_SUB}=1000",
                "--rate",
                f"{CHA_SUB}:{WELSH_SUB}=10",
                "--rate",
                f"{WELSH_SUB}:{CHA_SUB}=0.1",
            ]
        )
        self.assertEqual(code, 0)
        result = json.loads(output)
        self.assertEqual(result["remaining_shortfall"], "20")
        self.assertTrue(result["can_deposit"])
        self.assertEqual(result["swap_options"][0]["symbol"], "WELSH")

    def test_route_pick(self) -> None:
        primary = self._write(
            "primary.json",
            {
                "token_in": CHA_SUB,
                "token_out": WELSH_SUB,
                "amount_in": 1000,
                "amount_out": 900,
                "path": [CHA_SUB, WELSH_SUB],
            },
        )
        alternate = self._write(
            "alternate.json",
            {
                "token_in": CHA_SUB,
                "token_out": WELSH_SUB,
                "amount_in": 1000,
                "amount_out": 0,
                "legs": [
                    {"token_in": CHA_SUB, "token_out": WELSH_SUB, "amount_in": 500, "amount_out": 600},
                    {"token_in": CHA_SUB, "token_out": WELSH_SUB, "amount_in": 500, "amount_out": 400},
                ],
            },
        )

        code, output, _ = self._run(
            ["route", "pick", "--primary", primary, "--alternate", alternate]
        )

        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertEqual(payload["selected"], "alternate")
        self.assertEqual(payload["summary"]["amount_out"], 1000)

    def test_unknown_token_is_reported(self) -> None:
        code, _, err = self._run(
            [
                "plan",
                "single",
                "--catalog",
                self.catalog,
                "--from",
                "SP0.nope",
                "--to",
                WELSH_SUB,
                "--amount",
                "1",
            ]
        )
        self.assertEqual(code, 2)
        self.assertIn("ERROR: Unknown token", err)

    def test_sandwich_inverted_prices_rejected(self) -> None:
        code, _, err = self._run(
            [
                "plan",
                "sandwich",
                "--catalog",
                self.catalog,
                "--token-a",
                CHA_SUB,
                "--token-b",
                WELSH_SUB,
                "--usd",
                "1000",
                "--buy-price",
                "0.06",
                "--sell-price",
                "0.05",
                "--price",
                "SP1.charisma-token=0.05",
                "--price",
                "SP2.welsh=0.06",
            ]
        )
        self.assertEqual(code, 2)
        self.assertIn("Sell price must be higher", err)


if __name__ == "__main__":
    unittest.main()
