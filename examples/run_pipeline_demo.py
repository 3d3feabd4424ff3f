#!/usr/bin/env python3
"""
Example: Move a few deals through the pipeline and print the analytics.

This script demonstrates:
1. Creating deals (stage defaults to Lead)
2. Moving deals across board columns (probability follows the stage)
3. Overriding probability by hand
4. Building the funnel + summary report

Usage:
    python examples/run_pipeline_demo.py
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from deal_pipeline import InMemoryDealStore, PipelineEngine


SAMPLE_DEALS = [
    {'name': 'Enterprise CRM Implementation', 'company': 'TechCorp Solutions',
     'value': 75000, 'contact_id': 1, 'contact_name': 'John Smith'},
    {'name': 'Marketing Automation Setup', 'company': 'Digital Marketing Pro',
     'value': 25000, 'contact_id': 2, 'contact_name': 'Sarah Johnson', 'stage': 'Qualified'},
    {'name': 'Data Analytics Platform', 'company': 'DataFlow Inc',
     'value': 120000, 'contact_id': 3, 'contact_name': 'Michael Chen', 'stage': 'Proposal'},
    {'name': 'Support Desk Migration', 'company': 'Retail Plus',
     'value': 18000, 'contact_id': 4, 'contact_name': 'Emily Davis'},
]


async def main():
    engine = PipelineEngine(InMemoryDealStore())

    created = [await engine.create_deal(data) for data in SAMPLE_DEALS]
    crm, marketing, analytics, support = created

    await engine.move_stage(analytics.id, 'Closed Won')
    await engine.move_stage(marketing.id, 'Proposal')
    await engine.update_deal(crm.id, {'stage': 'Qualified', 'probability': 60})
    await engine.update_deal(support.id, {'stage': 'Closed Lost'})

    print('\nDeals:')
    for deal in await engine.list_deals():
        print(f"  #{deal.id} {deal.name:<32} {deal.stage.value:<12} {deal.probability:>3}%  ${deal.value:,.0f}")

    report = await engine.build_report()

    print('\nFunnel:')
    for row in report.funnel:
        print(f"  {row.stage.value:<12} {row.count:>2} deals  ${row.total_value:,.0f}")

    summary = report.summary
    print('\nSummary:')
    print(f"  Pipeline value:     ${summary.total_pipeline_value:,.0f}")
    print(f"  Active deals:       {summary.active_deals_count}")
    print(f"  Closing this month: {summary.monthly_closed_deals_count} (${summary.monthly_closed_deals_value:,.0f})")
    print(f"  Win rate:           {summary.win_rate}%")


if __name__ == '__main__':
    asyncio.run(main())
