"""
Unit tests for audit result storage.
"""

import asyncio

from facade_scout.db import Database
from facade_scout.models import AuditSummary, Facade, FacadeAuditResult, Opportunity, SubItem


def make_result():
    return FacadeAuditResult(
        page_url="https://example.com",
        opportunities=[
            Opportunity(
                product_name="Intercom Widget",
                entity_name="Intercom",
                facade=Facade("React Live Chat Loader", "https://github.com/calibreapp/react-live-chat-loader"),
                total_transfer_size=12800,
                total_blocking_time=110.0,
                sub_items=[
                    SubItem(url="https://js.intercomcdn.com/frame-modern.a.js", transfer_size=8000,
                            blocking_time=110.0, main_thread_time=160.0,
                            first_start_time=300, first_end_time=302),
                    SubItem(url="https://widget.intercom.io/widget/1", transfer_size=4000,
                            first_start_time=200, first_end_time=202),
                    SubItem(url="Other resources", transfer_size=800),
                ],
            ),
        ],
        summary=AuditSummary(wasted_bytes=12800, wasted_ms=110.0),
        is_applicable=True,
        score=0,
        display_value="1 facade alternative available",
    )


async def _save_and_read(db_path, result):
    db = Database(db_path)
    await db.connect()
    try:
        audit_id = await db.save_audit_result(result)
        opportunities = await db.get_opportunities(audit_id)
        stats = await db.get_stats()
    finally:
        await db.close()
    return opportunities, stats


class TestDatabase:

    def test_round_trips_opportunities_in_order(self, tmp_path):
        opportunities, _stats = asyncio.run(_save_and_read(tmp_path / "audits.db", make_result()))

        assert len(opportunities) == 1
        opp = opportunities[0]
        assert opp["product_name"] == "Intercom Widget"
        assert opp["facade_repo"] == "https://github.com/calibreapp/react-live-chat-loader"
        assert opp["transfer_size"] == 12800
        assert [item["url"] for item in opp["items"]] == [
            "https://js.intercomcdn.com/frame-modern.a.js",
            "https://widget.intercom.io/widget/1",
            "Other resources",
        ]
        assert opp["items"][0]["main_thread_time"] == 160.0
        assert opp["items"][2]["first_start_time"] is None

    def test_stats(self, tmp_path):
        empty = FacadeAuditResult(page_url="https://example.org")

        async def run():
            db = Database(tmp_path / "nested" / "audits.db")
            await db.connect()
            try:
                await db.save_audit_result(make_result())
                await db.save_audit_result(empty)
                return await db.get_stats()
            finally:
                await db.close()

        stats = asyncio.run(run())

        assert stats == {
            "total_audits": 2,
            "audits_with_opportunities": 1,
            "total_opportunities": 1,
            "total_wasted_bytes": 12800,
        }
