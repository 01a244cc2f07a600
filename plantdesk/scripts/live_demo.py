from __future__ import annotations

import argparse
import asyncio
import json

import httpx

from plantdesk.config import settings
from plantdesk.container import Container
from plantdesk.devserver import create_app
from plantdesk.domain.actors import Actor
from plantdesk.observability import configure_logging
from plantdesk.remote import HttpRemoteStore

SEED = {
    "trouble_record": [
        {"id": "tr-1", "tanggal": "2026-10-01", "masalah": "Conveyor belt slip", "status": "open"},
        {"id": "tr-2", "tanggal": "2026-10-03", "masalah": "Dryer temperature alarm", "status": "open"},
    ],
    "trouble_record_NPK1": [
        {"id": "tr-9", "tanggal": "2026-10-02", "masalah": "Granulator vibration", "status": "closed"},
    ],
}


def _print(title: str, payload: object) -> None:
    print(f"\n=== {title} ===")
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument('--base-url', default=None,
                        help='Spreadsheet API URL. Omit to run against the in-memory dev server.')
    parser.add_argument('--log-level', default=settings.log_level)
    args = parser.parse_args()

    configure_logging(args.log_level)

    if args.base_url:
        client = httpx.AsyncClient()
        base_url = args.base_url
    else:
        # In-process dev server, no network involved.
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=create_app(SEED)))
        base_url = 'http://devserver/exec'

    async with client:
        container = Container(store=HttpRemoteStore(base_url=base_url, client=client))
        admin = Actor(id='u-001', name='Admin Demo', role='admin', plant='NPK2')
        operator = Actor(id='u-002', name='Operator Demo', role='user', plant='NPK2')

        # Two concurrent reads share one remote call.
        first, second = await asyncio.gather(
            container.collections.read_by_plant('trouble_record'),
            container.collections.read_by_plant('trouble_record'),
        )
        _print('READ BY PLANT', first.data)
        _print('CACHE', container.cache.stats().keys)

        record = first.data[0]
        updated = await container.gateway.update(
            'trouble_record',
            {**record, 'status': 'closed'},
            admin,
            before=record,
        )
        _print('ADMIN UPDATE', {'state': updated.state.value, 'changes': updated.activity and updated.activity.changes})
        _print('CACHE AFTER WRITE', container.cache.stats().keys)

        deleted = await container.gateway.delete(
            'trouble_record', first.data[1], operator, reason='Duplicate entry'
        )
        _print('OPERATOR DELETE', {
            'state': deleted.state.value,
            'approval': deleted.approval.to_dict() if deleted.approval else None,
        })

        history = await container.activity.query('trouble_record', record['id'])
        _print('ACTIVITY LOG', [entry.to_dict() for entry in history])

        container.logout()


if __name__ == '__main__':
    asyncio.run(main())
