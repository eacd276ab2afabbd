"""Sequential fail-fast submission tests."""

import asyncio
import unittest
from decimal import Decimal

from order_adapter.gateway import DryRunOrderGateway
from order_engine.config import PlannerSettings
from order_engine.models import OrderRequest, PriceCondition, TriggerSet
from order_submission.models import SubmissionStatus
from order_submission.sequencer import OrderSubmissionSequencer, SubmissionValidationError
from token_catalog.models import Token, TokenKind

CHA = Token(
    contract_id="SP1.charisma-token-subnet",
    symbol="CHA",
    decimals=6,
    kind=TokenKind.SUBNET,
    base_id="SP1.charisma-token",
)
WELSH = Token(contract_id="SP2.welsh", symbol="WELSH", decimals=6)


def _requests(count: int):
    return tuple(OrderRequest(i, CHA, WELSH, Decimal("1")) for i in range(1, count + 1))


class SequencerTests(unittest.IsolatedAsyncioTestCase):
    async def test_all_orders_created_in_order(self) -> None:
        gateway = DryRunOrderGateway("SP9OWNER", PlannerSettings())

        report = await OrderSubmissionSequencer().submit(_requests(3), gateway.create_order)

        self.assertEqual(len(report.succeeded), 3)
        self.assertEqual(report.order_ids, ("dry-run-1", "dry-run-2", "dry-run-3"))
        self.assertEqual(gateway.attempted, [1, 2, 3])
        self.assertIsNone(report.first_error)
        self.assertFalse(report.cancelled)

    async def test_third_of_five_fails(self) -> None:
        gateway = DryRunOrderGateway("SP9OWNER", PlannerSettings(), fail_at=3)

        report = await OrderSubmissionSequencer().submit(_requests(5), gateway.create_order)

        self.assertEqual(len(report.succeeded), 2)
        self.assertEqual(len(report.failed), 1)
        self.assertEqual(len(report.skipped), 2)
        self.assertEqual(
            [outcome.status for outcome in report.outcomes],
            [
                SubmissionStatus.DONE,
                SubmissionStatus.DONE,
                SubmissionStatus.ERROR,
                SubmissionStatus.SKIPPED,
                SubmissionStatus.SKIPPED,
            ],
        )
        self.assertEqual(gateway.attempted, [1, 2, 3])
        self.assertEqual(report.first_error, "Order 3 rejected by dry-run gateway.")

    async def test_progress_reports_every_transition(self) -> None:
        seen = []
        gateway = DryRunOrderGateway("SP9OWNER", PlannerSettings(), fail_at=2)
        sequencer = OrderSubmissionSequencer(on_progress=seen.append)

        await sequencer.submit(_requests(3), gateway.create_order)

        self.assertEqual(
            [(outcome.sequence, outcome.status) for outcome in seen],
            [
                (1, SubmissionStatus.SIGNING),
                (1, SubmissionStatus.DONE),
                (2, SubmissionStatus.SIGNING),
                (2, SubmissionStatus.ERROR),
                (3, SubmissionStatus.SKIPPED),
            ],
        )

    async def test_invalid_request_blocks_every_call(self) -> None:
        calls = []

        async def create_order(request):
            calls.append(request.sequence)
            return "id"

        bad_triggers = TriggerSet(condition=PriceCondition(token=None, target=Decimal("1")))
        requests = _requests(2) + (OrderRequest(3, CHA, WELSH, Decimal("1"), bad_triggers),)

        with self.assertRaises(SubmissionValidationError):
            await OrderSubmissionSequencer().submit(requests, create_order)
        self.assertEqual(calls, [])

    async def test_empty_batch_rejected(self) -> None:
        async def create_order(request):
            return "id"

        with self.assertRaises(SubmissionValidationError):
            await OrderSubmissionSequencer().submit((), create_order)

    async def test_cancel_between_steps(self) -> None:
        cancel = asyncio.Event()

        async def create_order(request):
            if request.sequence == 2:
                cancel.set()
            return f"order-{request.sequence}"

        report = await OrderSubmissionSequencer().submit(_requests(4), create_order, cancel)

        self.assertTrue(report.cancelled)
        self.assertEqual(len(report.succeeded), 2)
        self.assertEqual(len(report.skipped), 2)
        self.assertEqual(report.failed, ())

    async def test_report_serializes(self) -> None:
        gateway = DryRunOrderGateway("SP9OWNER", PlannerSettings(), fail_at=1)

        report = await OrderSubmissionSequencer().submit(_requests(2), gateway.create_order)
        data = report.to_dict()

        self.assertEqual(data["failed"], 1)
        self.assertEqual(data["skipped"], 1)
        self.assertEqual(data["outcomes"][0]["status"], "error")


if __name__ == "__main__":
    unittest.main()
