"""Tests for the sale event broker behind GET /sales/events."""

import asyncio
import threading

from salestrack.core.access import Actor
from salestrack.core.events import QUEUE_SIZE, SaleEventBroker

ADMIN = Actor(user_id=1, username="admin", role="admin")
JULIE = Actor(user_id=2, username="julie", role="employee")


def _event(employee_name, sale_id=1):
    return {"type": "sale_created", "sale_id": sale_id, "employee_name": employee_name}


class TestSaleEventBroker:
    def test_events_are_filtered_by_owner(self):
        async def scenario():
            broker = SaleEventBroker()
            admin_sub = broker.subscribe(ADMIN)
            julie_sub = broker.subscribe(JULIE)

            assert broker.publish(_event("sherman")) == 1
            assert broker.publish(_event("julie", sale_id=2)) == 2

            admin_events = [await asyncio.wait_for(admin_sub.queue.get(), 1) for _ in range(2)]
            julie_event = await asyncio.wait_for(julie_sub.queue.get(), 1)
            return admin_events, julie_event, julie_sub.queue.empty()

        admin_events, julie_event, julie_drained = asyncio.run(scenario())
        assert [e["employee_name"] for e in admin_events] == ["sherman", "julie"]
        assert julie_event["sale_id"] == 2
        assert julie_drained

    def test_publish_from_worker_thread(self):
        async def scenario():
            broker = SaleEventBroker()
            sub = broker.subscribe(ADMIN)

            worker = threading.Thread(target=broker.publish, args=(_event("julie"),))
            worker.start()
            worker.join()

            return await asyncio.wait_for(sub.queue.get(), 1)

        assert asyncio.run(scenario())["employee_name"] == "julie"

    def test_full_queue_drops_events(self):
        async def scenario():
            broker = SaleEventBroker()
            sub = broker.subscribe(ADMIN)
            for i in range(QUEUE_SIZE + 5):
                broker.publish(_event("julie", sale_id=i))
            # Let the scheduled callbacks run
            await asyncio.sleep(0)
            return sub.queue.qsize()

        assert asyncio.run(scenario()) == QUEUE_SIZE

    def test_unsubscribe(self):
        async def scenario():
            broker = SaleEventBroker()
            sub = broker.subscribe(JULIE)
            assert broker.subscriber_count == 1
            broker.unsubscribe(sub)
            return broker.subscriber_count, broker.publish(_event("julie"))

        assert asyncio.run(scenario()) == (0, 0)
