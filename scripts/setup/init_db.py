# scripts/setup/init_db.py
"""
Initialize the database: create tables, then seed spots from SPOT_LAYOUT,
default rates and (optionally) the sample vehicles. Safe to re-run; existing
rows are left alone.
Usage: python scripts/setup/init_db.py [--no-sample-vehicles] [--show-spots]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from smartpark.config import settings
from smartpark.database import SessionLocal, create_tables, engine
from smartpark.services.seed_service import seed_rates, seed_sample_vehicles, seed_spots
from smartpark.services.spot_pool import SpotPool


def check_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        print(f"❌ Cannot connect to {settings.DATABASE_URL}: {e}")
        return False
    print(f"✅ Connected to {settings.DATABASE_URL}")
    return True


def seed(with_samples: bool):
    db = SessionLocal()
    try:
        print(f"   spots added:    {seed_spots(db)}")
        print(f"   rates added:    {seed_rates(db)}")
        if with_samples:
            print(f"   vehicles added: {seed_sample_vehicles(db)}")
    finally:
        db.close()


def report(show_spots: bool):
    db = SessionLocal()
    try:
        pool = SpotPool(db)
        for row in pool.availability():
            print(f"   {row['vehicle_class']:<6} {row['available']}/{row['total']} available")
        if show_spots:
            print("   " + " ".join(s.name for s in pool.list_spots()))
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create and seed the SmartPark database")
    parser.add_argument("--no-sample-vehicles", action="store_true",
                        help="Skip registering the demo vehicles")
    parser.add_argument("--show-spots", action="store_true", help="List every spot name after seeding")
    args = parser.parse_args()

    print("🗄️  SmartPark DB Initialization")
    print("=" * 40)
    if not check_connection():
        sys.exit(1)

    create_tables()
    print(f"📋 Tables: {', '.join(sorted(inspect(engine).get_table_names()))}")

    print("\n🌱 Seeding...")
    seed(with_samples=settings.SEED_SAMPLE_VEHICLES and not args.no_sample_vehicles)

    print("\n🅿️  Lot layout:")
    report(args.show_spots)

    print("\n🎉 Done. Start the backend with:")
    print(f"   uvicorn smartpark.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
