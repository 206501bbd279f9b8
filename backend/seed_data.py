"""Create tables and seed a development database.

Usage:
    python seed_data.py --admin <user-uuid> [--credits 100] [--leads 25]
"""

import argparse
import asyncio
import random
from uuid import UUID

from sqlalchemy import select

from verifiedmeasure.database import AsyncSessionLocal, Base, engine
from verifiedmeasure.models import AdminUser
from verifiedmeasure.services.admin_service import AdminService
from verifiedmeasure.services.lead_store import LeadStore

COMPANIES = [
    {"name": "TechCorp", "website": "techcorp.com", "industry": "Technology"},
    {"name": "DataMinds", "website": "dataminds.io", "industry": "Data Analytics"},
    {"name": "CloudServe", "website": "cloudserve.com", "industry": "Cloud Services"},
    {"name": "AI Innovations", "website": "aiinnovations.ai", "industry": "Artificial Intelligence"},
    {"name": "CyberSafe", "website": "cybersafe.net", "industry": "Cybersecurity"},
    {"name": "DevOps Pro", "website": "devopspro.com", "industry": "DevOps"},
    {"name": "Analytics Plus", "website": "analyticsplus.com", "industry": "Business Intelligence"},
    {"name": "Code Masters", "website": "codemasters.dev", "industry": "Software Development"},
]

CITIES = ["Austin", "Denver", "Boston", "Seattle", "Chicago"]


def sample_rows(count: int):
    rows = []
    for i in range(count):
        company = random.choice(COMPANIES)
        rows.append({
            "company": f"{company['name']} {i + 1}",
            "website": company["website"],
            "email": f"contact{i + 1}@{company['website']}",
            "phone": f"+1-555-{random.randint(1000, 9999)}",
            "meta": {"industry": company["industry"], "city": random.choice(CITIES)},
        })
    return rows


async def seed(admin_id: str, credits: int, lead_count: int):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✅ Tables created")

    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(AdminUser).where(AdminUser.user_id == UUID(admin_id)))
        if existing.scalar_one_or_none() is None:
            db.add(AdminUser(user_id=UUID(admin_id)))
            await db.commit()
            print(f"✅ Admin capability granted to {admin_id}")

        admin = AdminService(LeadStore(db))
        if lead_count:
            result = await admin.import_leads(admin_id, sample_rows(lead_count))
            print(f"✅ Imported {result.imported} leads")
        if credits:
            result = await admin.grant_credit(admin_id, admin_id, credits)
            print(f"✅ Admin balance: {result.new_balance}")

    await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Seed the VerifiedMeasure database")
    parser.add_argument("--admin", required=True, help="auth user id to mark as admin")
    parser.add_argument("--credits", type=int, default=100)
    parser.add_argument("--leads", type=int, default=25)
    args = parser.parse_args()

    asyncio.run(seed(args.admin, args.credits, args.leads))


if __name__ == "__main__":
    main()
