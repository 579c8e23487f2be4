#!/usr/bin/env python3
"""Script to seed demo data and load FAQ knowledge into a tenant."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from supportdesk.core.config import get_settings
from supportdesk.core.container import ServiceContainer, build_container
from supportdesk.models import KnowledgeCreate, KnowledgeType
from supportdesk.services.seed import DEMO_EMAIL, DEMO_PASSWORD, DEMO_TENANT_ID, seed_demo_data


async def ingest_json_faqs(
    file_path: Path,
    tenant_id: str,
    container: ServiceContainer,
) -> int:
    """Add FAQ entries from a JSON list of {question, answer} objects."""
    print(f"Processing: {file_path}")

    faqs = json.loads(file_path.read_text(encoding="utf-8"))

    count = 0
    for faq in faqs:
        question = faq.get("question", "").strip()
        answer = faq.get("answer", "").strip()
        if not question or not answer:
            continue

        await container.knowledge.add_knowledge(
            tenant_id,
            KnowledgeCreate(
                title=question[:255],
                content=answer,
                type=KnowledgeType.FAQ,
                source=file_path.name,
            ),
        )
        count += 1

    if not count:
        print("  No FAQs to ingest")
    else:
        print(f"  Ingested {count} FAQs")
    return count


async def main():
    parser = argparse.ArgumentParser(description="Seed demo data into the configured database")
    parser.add_argument("--faqs", nargs="*", default=[], help="JSON FAQ files to add as knowledge")
    parser.add_argument("--tenant-id", default=DEMO_TENANT_ID, help="Tenant receiving the FAQs")

    args = parser.parse_args()

    container = build_container(get_settings())
    await container.startup()

    try:
        if await seed_demo_data(container):
            print(f"Created demo user {DEMO_EMAIL} (password: {DEMO_PASSWORD})")
            print(f"Created demo client {DEMO_TENANT_ID}")
        else:
            print("Demo data already present")

        total = 0
        for faq_file in args.faqs:
            path = Path(faq_file)
            if not path.exists():
                print(f"Error: Path does not exist: {path}")
                sys.exit(1)
            total += await ingest_json_faqs(path, args.tenant_id, container)

        if args.faqs:
            print(f"\nTotal FAQs ingested: {total}")
    finally:
        await container.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
